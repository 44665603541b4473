"""Unit tests for structured event logging."""

from __future__ import annotations

import io

from voicedash.telemetry.logger import EventLogger, configure_logging


def test_event_lines_are_sorted_and_sanitized(log_lines: list[str]) -> None:
    """Context keys are sorted and values reduced to shell-safe tokens."""

    EventLogger("catalog").warning("fetch_failed", provider="google", detail="bad key!", count=2)

    assert log_lines[-1] == (
        "[event] level=WARNING component=catalog event=fetch_failed "
        "count=2 detail=bad_key_ provider=google"
    )


def test_blank_context_values_render_as_none(log_lines: list[str]) -> None:
    """Blank context values are rendered as `none`."""

    EventLogger("session").info("resolved", user_id="  ")

    assert log_lines[-1].endswith("event=resolved user_id=none")


def test_configure_logging_filters_by_level() -> None:
    """The configured sink receives only events at or above its level."""

    sink = io.StringIO()
    configure_logging("WARNING", sink)
    try:
        EventLogger("config").info("loaded")
        EventLogger("config").warning("placeholder_backend_url")
    finally:
        configure_logging("WARNING")

    output = sink.getvalue()
    assert "event=loaded" not in output
    assert "event=placeholder_backend_url" in output
