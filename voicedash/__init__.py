"""Top-level package for voicedash.

This package provides a command-line dashboard for voice cloning and
text-to-speech submissions backed by a hosted auth/storage platform. The main
entry point is the Typer application in `voicedash.cli`.
"""

from .session import AnonymousSession, AuthenticatedSession, Identity

__all__ = ["AnonymousSession", "AuthenticatedSession", "Identity", "__version__"]

__version__ = "0.1.0"
