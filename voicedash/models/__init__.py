"""Shared typed data models for voicedash.

This package contains dataclasses and fixed vocabularies used across modules
to avoid cross-module coupling and circular imports.
"""

from .datatypes import (
    ProviderCredential,
    TtsJob,
    UserUsage,
    VoiceCatalogEntry,
    VoiceClone,
)

__all__ = [
    "ProviderCredential",
    "TtsJob",
    "UserUsage",
    "VoiceCatalogEntry",
    "VoiceClone",
]
