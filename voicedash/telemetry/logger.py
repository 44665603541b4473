"""Structured event logging utilities.

Responsibilities:
- Emit concise, deterministic one-line events through `loguru`.
- Keep secret values out of log lines by logging only sanitized context tokens.
"""

from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger as _loguru_logger


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


def configure_logging(level: str = "WARNING", sink: TextIO | None = None) -> int:
    """Replace loguru handlers with one plain-message sink and return its id."""

    _loguru_logger.remove()
    return _loguru_logger.add(
        sink or sys.stderr,
        format="{message}",
        level=level,
        colorize=False,
    )


class EventLogger:
    """Emit deterministic component events for CLI-observable activity."""

    def __init__(self, component: str) -> None:
        """Bind the logger to one component name."""

        self.component = component

    def _emit(self, level: str, event: str, **context: object) -> None:
        """Emit one structured event line."""

        line = (
            f"[event] level={level} component={self.component} "
            f"event={event}{_format_context(context)}"
        )
        _loguru_logger.log(level, line)

    def info(self, event: str, **context: object) -> None:
        """Emit an informational event."""

        self._emit("INFO", event, **context)

    def warning(self, event: str, **context: object) -> None:
        """Emit a warning event."""

        self._emit("WARNING", event, **context)

    def error(self, event: str, **context: object) -> None:
        """Emit an error event without sensitive payload details."""

        self._emit("ERROR", event, **context)
