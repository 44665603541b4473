"""Telemetry helpers.

This package emits structured component events for deterministic auditing.
"""

from .logger import EventLogger, configure_logging

__all__ = ["EventLogger", "configure_logging"]
