"""TTS job submission form validation.

Responsibilities:
- Validate one submission in a fixed rule order where the first failure wins.
- Reject locally invalid submissions before any catalog request is made.
- Track `idle -> validating -> rejected|accepted` form state.
- Emit an immutable submission payload; the form never submits anything over
  the network.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from ..errors import ValidationError
from ..models.datatypes import SOURCE_KINDS, SOURCE_TEXT
from ..parsing import normalize_optional_string
from ..telemetry.logger import EventLogger
from ..voices.catalog import STATE_LOADED, STATE_UNINITIALIZED, VoiceCatalogFetcher


SEGMENT_SIZE_MIN = 100
SEGMENT_SIZE_MAX = 300

VOICE_SOURCE_CLONE = "clone"
VOICE_SOURCE_GOOGLE = "google"
VOICE_SOURCES = (VOICE_SOURCE_CLONE, VOICE_SOURCE_GOOGLE)

FORM_IDLE = "idle"
FORM_VALIDATING = "validating"
FORM_REJECTED = "rejected"
FORM_ACCEPTED = "accepted"

_log = EventLogger("tts_form")


@dataclass(frozen=True, slots=True)
class JobFormInput:
    """Raw field values collected for one submission."""

    source_kind: str
    voice_source: str
    text: str | None = None
    source_path: Path | None = None
    clone_id: str | None = None
    catalog_voice: str | None = None
    language: str = "Vietnamese"
    segment_size: int = SEGMENT_SIZE_MAX


@dataclass(frozen=True, slots=True)
class VoiceReference:
    """Voice chosen for a submission: a clone id or a catalog voice name."""

    source: str
    identifier: str


@dataclass(frozen=True, slots=True)
class SubmissionPayload:
    """Accepted submission handed to the job executor.

    Attributes:
        source_kind: One of `SOURCE_KINDS`.
        voice: Selected voice reference.
        language: Output language label.
        segment_size: Segment size within `[SEGMENT_SIZE_MIN, SEGMENT_SIZE_MAX]`.
        text: Inline text for `text` sources.
        source_path: File path for file sources.
    """

    source_kind: str
    voice: VoiceReference
    language: str
    segment_size: int
    text: str | None = None
    source_path: Path | None = None


class JobSubmissionForm:
    """Validation state machine for TTS submissions.

    Local rules (source, voice selection, segment size, language) run first
    and never touch the network. Only a submission that passes them and names
    a catalog voice loads the catalog, and only when it is not loaded yet.
    """

    def __init__(
        self,
        catalog_fetcher: VoiceCatalogFetcher | None = None,
        *,
        catalog_fetcher_factory: Callable[[], VoiceCatalogFetcher] | None = None,
    ) -> None:
        """Bind the form to a catalog fetcher, or a factory building one on demand."""

        self.catalog_fetcher = catalog_fetcher
        self.catalog_fetcher_factory = catalog_fetcher_factory
        self.state = FORM_IDLE
        self.rejection: ValidationError | None = None
        self.payload: SubmissionPayload | None = None

    def reset(self) -> None:
        """Return to the idle state, clearing rejection and payload."""

        self.state = FORM_IDLE
        self.rejection = None
        self.payload = None

    def submit(self, form_input: JobFormInput) -> SubmissionPayload:
        """Validate `form_input` and return the accepted payload.

        A rejected form keeps the `rejected` state and its `rejection` so
        callers can render it; it returns to `idle` on `reset()` or at the
        start of the next `submit()`.

        Raises:
            ValidationError: The first failing rule; the form is left rejected.
            DashboardError: Building the catalog fetcher failed, for example
                on an expired session; the form returns to idle.
        """

        self.reset()
        self.state = FORM_VALIDATING
        try:
            payload = self._validate_local(form_input)
            if payload.voice.source == VOICE_SOURCE_GOOGLE:
                self._validate_catalog_voice(payload.voice.identifier)
        except ValidationError as exc:
            self.state = FORM_REJECTED
            self.rejection = exc
            _log.info("rejected", field=exc.field or "unknown")
            raise
        except Exception:
            self.state = FORM_IDLE
            raise
        self.state = FORM_ACCEPTED
        self.payload = payload
        _log.info(
            "accepted",
            source=payload.source_kind,
            voice_source=payload.voice.source,
            segment_size=payload.segment_size,
        )
        return payload

    def _validate_local(self, form_input: JobFormInput) -> SubmissionPayload:
        """Apply the network-free rules in order."""

        text, source_path = self._validate_source(form_input)
        voice = self._validate_voice(form_input)
        segment_size = self._validate_segment_size(form_input.segment_size)
        language = normalize_optional_string(form_input.language)
        if language is None:
            raise ValidationError("Please choose an output language.", field="language")

        return SubmissionPayload(
            source_kind=form_input.source_kind,
            voice=voice,
            language=language,
            segment_size=segment_size,
            text=text,
            source_path=source_path,
        )

    @staticmethod
    def _validate_source(form_input: JobFormInput) -> tuple[str | None, Path | None]:
        """Require inline text for text sources and a file for file sources."""

        if form_input.source_kind not in SOURCE_KINDS:
            raise ValidationError(
                f"Unsupported source kind `{form_input.source_kind}`.",
                field="source",
                hint=f"Use one of: {', '.join(SOURCE_KINDS)}.",
            )
        if form_input.source_kind == SOURCE_TEXT:
            text = normalize_optional_string(form_input.text)
            if text is None:
                raise ValidationError("Please enter text to convert.", field="text")
            return text, None
        if form_input.source_path is None:
            raise ValidationError("Please choose a source file.", field="file")
        return None, form_input.source_path

    @staticmethod
    def _validate_voice(form_input: JobFormInput) -> VoiceReference:
        """Require a clone id or a catalog voice name for the voice source."""

        if form_input.voice_source == VOICE_SOURCE_CLONE:
            clone_id = normalize_optional_string(form_input.clone_id)
            if clone_id is None:
                raise ValidationError("Please choose a voice clone.", field="clone_id")
            return VoiceReference(source=VOICE_SOURCE_CLONE, identifier=clone_id)

        if form_input.voice_source != VOICE_SOURCE_GOOGLE:
            raise ValidationError(
                f"Unsupported voice source `{form_input.voice_source}`.",
                field="voice_source",
                hint=f"Use one of: {', '.join(VOICE_SOURCES)}.",
            )
        voice_name = normalize_optional_string(form_input.catalog_voice)
        if voice_name is None:
            raise ValidationError("Please choose a Google TTS voice.", field="voice")
        return VoiceReference(source=VOICE_SOURCE_GOOGLE, identifier=voice_name)

    def _resolve_catalog_fetcher(self) -> VoiceCatalogFetcher | None:
        """Return the bound fetcher, building it from the factory on first use."""

        if self.catalog_fetcher is None and self.catalog_fetcher_factory is not None:
            self.catalog_fetcher = self.catalog_fetcher_factory()
        return self.catalog_fetcher

    def _validate_catalog_voice(self, voice_name: str) -> None:
        """Require a catalog that has not failed and lists `voice_name`."""

        fetcher = self._resolve_catalog_fetcher()
        if fetcher is None:
            return
        if fetcher.snapshot.state == STATE_UNINITIALIZED:
            fetcher.refresh()

        snapshot = fetcher.snapshot
        if fetcher.has_failed:
            detail = snapshot.error.detail if snapshot.error is not None else "unknown error"
            raise ValidationError(
                f"The Google voice list could not be loaded: {detail}",
                field="voice",
                hint=snapshot.error.hint if snapshot.error is not None else None,
            )
        if snapshot.state == STATE_LOADED and voice_name not in {
            voice.name for voice in snapshot.voices
        }:
            raise ValidationError(
                f"Voice `{voice_name}` is not in the Google voice list.",
                field="voice",
                hint="Run `voicedash voices` to see available voices.",
            )

    @staticmethod
    def _validate_segment_size(segment_size: int) -> int:
        """Require an integer segment size inside the inclusive range."""

        if isinstance(segment_size, bool) or not isinstance(segment_size, int):
            raise ValidationError("Segment size must be an integer.", field="segment_size")
        if not SEGMENT_SIZE_MIN <= segment_size <= SEGMENT_SIZE_MAX:
            raise ValidationError(
                f"Segment size must be between {SEGMENT_SIZE_MIN} and {SEGMENT_SIZE_MAX}.",
                field="segment_size",
            )
        return segment_size
