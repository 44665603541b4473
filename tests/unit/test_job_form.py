"""Unit tests for TTS submission form validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from voicedash.errors import TransportError, UnauthenticatedError, ValidationError
from voicedash.jobs.form import (
    FORM_ACCEPTED,
    FORM_IDLE,
    FORM_REJECTED,
    JobFormInput,
    JobSubmissionForm,
)
from voicedash.models.datatypes import VoiceCatalogEntry
from voicedash.voices.catalog import VoiceCatalogFetcher


class StaticSource:
    """Catalog source returning a fixed list."""

    def load(self) -> list[VoiceCatalogEntry]:
        """Return one Vietnamese catalog voice."""

        return [
            VoiceCatalogEntry(
                name="vi-VN-Standard-A",
                language_codes=("vi-VN",),
                gender="FEMALE",
                natural_sample_rate_hertz=24000,
            )
        ]


def _loaded_fetcher() -> VoiceCatalogFetcher:
    """Return a fetcher that has already loaded the static catalog."""

    fetcher = VoiceCatalogFetcher(StaticSource())
    fetcher.refresh()
    return fetcher


def test_text_submission_with_catalog_voice_is_accepted() -> None:
    """Valid text submissions produce a payload and the accepted state."""

    form = JobSubmissionForm(_loaded_fetcher())

    payload = form.submit(
        JobFormInput(
            source_kind="text",
            voice_source="google",
            text="  Xin chào  ",
            catalog_voice="vi-VN-Standard-A",
            segment_size=200,
        )
    )

    assert form.state == FORM_ACCEPTED
    assert form.payload == payload
    assert payload.text == "Xin chào"
    assert payload.voice.identifier == "vi-VN-Standard-A"
    assert payload.segment_size == 200
    assert payload.language == "Vietnamese"


@pytest.mark.parametrize("text", [None, "", "   ", "\n\t"])
def test_text_submissions_with_empty_text_are_always_rejected(text: str | None) -> None:
    """Blank text is rejected regardless of the other fields."""

    form = JobSubmissionForm()

    with pytest.raises(ValidationError) as exc_info:
        form.submit(
            JobFormInput(source_kind="text", voice_source="clone", text=text, clone_id="c1")
        )

    assert exc_info.value.field == "text"
    assert form.state == FORM_REJECTED
    assert form.rejection is exc_info.value


def test_source_rule_wins_over_voice_and_segment_rules() -> None:
    """The first failing rule in order is reported."""

    form = JobSubmissionForm()

    with pytest.raises(ValidationError) as exc_info:
        form.submit(
            JobFormInput(
                source_kind="txt",
                voice_source="clone",
                clone_id=None,
                segment_size=5000,
            )
        )

    assert exc_info.value.field == "file"


def test_voice_rule_wins_over_segment_rule(tmp_path: Path) -> None:
    """Missing clone id is reported before an out-of-range segment size."""

    form = JobSubmissionForm()

    with pytest.raises(ValidationError) as exc_info:
        form.submit(
            JobFormInput(
                source_kind="excel",
                voice_source="clone",
                source_path=tmp_path / "rows.xlsx",
                segment_size=50,
            )
        )

    assert exc_info.value.field == "clone_id"


@pytest.mark.parametrize("segment_size", [99, 301, 0, -1])
def test_out_of_range_segment_sizes_are_rejected(segment_size: int) -> None:
    """Segment sizes outside [100, 300] are rejected, not clamped."""

    form = JobSubmissionForm()

    with pytest.raises(ValidationError) as exc_info:
        form.submit(
            JobFormInput(
                source_kind="text",
                voice_source="clone",
                text="hello",
                clone_id="clone-1",
                segment_size=segment_size,
            )
        )

    assert exc_info.value.field == "segment_size"


@pytest.mark.parametrize("segment_size", [100, 300])
def test_segment_size_bounds_are_inclusive(segment_size: int) -> None:
    """Both range bounds are accepted."""

    payload = JobSubmissionForm().submit(
        JobFormInput(
            source_kind="text",
            voice_source="clone",
            text="hello",
            clone_id="clone-1",
            segment_size=segment_size,
        )
    )

    assert payload.segment_size == segment_size


def test_failed_catalog_fetch_rejects_catalog_voice() -> None:
    """Catalog voices cannot be submitted after a failed catalog fetch."""

    fetcher = VoiceCatalogFetcher(StaticSource())
    generation = fetcher.begin()
    fetcher.reject(generation, TransportError("offline"))

    with pytest.raises(ValidationError, match="could not be loaded: offline") as exc_info:
        JobSubmissionForm(fetcher).submit(
            JobFormInput(
                source_kind="text",
                voice_source="google",
                text="hello",
                catalog_voice="vi-VN-Standard-A",
            )
        )
    assert exc_info.value.field == "voice"


def test_unknown_catalog_voice_is_rejected() -> None:
    """Catalog voice names must exist in the loaded catalog."""

    with pytest.raises(ValidationError, match="not in the Google voice list"):
        JobSubmissionForm(_loaded_fetcher()).submit(
            JobFormInput(
                source_kind="text",
                voice_source="google",
                text="hello",
                catalog_voice="xx-XX-Missing",
            )
        )


def test_reset_returns_rejected_form_to_idle() -> None:
    """A rejected form returns to idle on reset."""

    form = JobSubmissionForm()
    with pytest.raises(ValidationError):
        form.submit(JobFormInput(source_kind="text", voice_source="clone"))

    form.reset()

    assert form.state == FORM_IDLE
    assert form.rejection is None
    assert form.payload is None


class CountingSource:
    """Catalog source that records how often it is loaded."""

    def __init__(self) -> None:
        """Start with no recorded loads."""

        self.loads = 0

    def load(self) -> list[VoiceCatalogEntry]:
        """Record the load and return the static catalog."""

        self.loads += 1
        return StaticSource().load()


def test_local_rules_fail_before_catalog_is_built_or_loaded() -> None:
    """Locally invalid submissions never build or load the catalog."""

    built: list[VoiceCatalogFetcher] = []

    def _factory() -> VoiceCatalogFetcher:
        """Build a counting fetcher and record it."""

        fetcher = VoiceCatalogFetcher(CountingSource())
        built.append(fetcher)
        return fetcher

    form = JobSubmissionForm(catalog_fetcher_factory=_factory)
    invalid_inputs = [
        JobFormInput(source_kind="text", voice_source="google", text="  ", catalog_voice="a"),
        JobFormInput(source_kind="text", voice_source="google", text="hello"),
        JobFormInput(
            source_kind="text",
            voice_source="google",
            text="hello",
            catalog_voice="vi-VN-Standard-A",
            segment_size=500,
        ),
    ]

    for form_input in invalid_inputs:
        with pytest.raises(ValidationError):
            form.submit(form_input)

    assert built == []
    assert form.state == FORM_REJECTED


def test_uninitialized_catalog_loads_once_after_local_rules_pass() -> None:
    """Valid catalog submissions load the catalog on demand and reuse it."""

    source = CountingSource()
    form = JobSubmissionForm(catalog_fetcher_factory=lambda: VoiceCatalogFetcher(source))
    form_input = JobFormInput(
        source_kind="text",
        voice_source="google",
        text="hello",
        catalog_voice="vi-VN-Standard-A",
    )

    first = form.submit(form_input)
    second = form.submit(form_input)

    assert first == second
    assert source.loads == 1
    assert form.state == FORM_ACCEPTED


def test_clone_submissions_never_touch_the_catalog() -> None:
    """Clone voices skip the catalog phase entirely."""

    source = CountingSource()
    form = JobSubmissionForm(VoiceCatalogFetcher(source))

    form.submit(JobFormInput(source_kind="text", voice_source="clone", text="hi", clone_id="c1"))

    assert source.loads == 0


def test_rejected_form_stays_rejected_until_next_submit() -> None:
    """Rejection is kept for rendering and cleared by the next submission."""

    form = JobSubmissionForm()
    with pytest.raises(ValidationError):
        form.submit(JobFormInput(source_kind="text", voice_source="clone"))

    assert form.state == FORM_REJECTED

    form.submit(JobFormInput(source_kind="text", voice_source="clone", text="hi", clone_id="c1"))

    assert form.state == FORM_ACCEPTED
    assert form.rejection is None


def test_fetcher_factory_failure_returns_form_to_idle() -> None:
    """Errors building the catalog fetcher propagate and leave the form idle."""

    def _expired() -> VoiceCatalogFetcher:
        """Fail the way an expired session does."""

        raise UnauthenticatedError("The stored session is expired or invalid.")

    form = JobSubmissionForm(catalog_fetcher_factory=_expired)

    with pytest.raises(UnauthenticatedError):
        form.submit(
            JobFormInput(
                source_kind="text",
                voice_source="google",
                text="hello",
                catalog_voice="vi-VN-Standard-A",
            )
        )

    assert form.state == FORM_IDLE
    assert form.rejection is None
