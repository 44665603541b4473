"""Voice clone registry for signed-in users.

Responsibilities:
- Validate voice samples (type, size, and WAV duration when measurable).
- Create clone records in `processing` status after uploading the sample.
- List the user's clones and summarize usage against plan limits.

Notes:
- Clone status moves to `ready` or `error` through the cloning provider's
  asynchronous pipeline, never through this module.
"""

from __future__ import annotations

import uuid
import wave
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from ..backend.client import BackendError, PlatformBackend, to_dashboard_error
from ..credentials import CredentialStore
from ..errors import ConflictError, MissingCredentialError, TransportError, ValidationError
from ..models.datatypes import (
    CLONE_STATUS_PROCESSING,
    CLONE_STATUSES,
    PROVIDER_ELEVENLABS,
    UserUsage,
    VoiceClone,
)
from ..parsing import normalize_optional_string
from ..session import Session, require_backend, require_identity
from ..telemetry.logger import EventLogger


CLONES_TABLE = "voice_clones"
SAMPLES_BUCKET = "voice-samples"

AUDIO_TYPES_BY_SUFFIX = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".m4a": "audio/x-m4a",
}
ALLOWED_AUDIO_TYPES = frozenset(AUDIO_TYPES_BY_SUFFIX.values())
MAX_AUDIO_BYTES = 50 * 1024 * 1024
MIN_SAMPLE_SECONDS = 11.0
MAX_SAMPLE_SECONDS = 40.0

DEFAULT_PLAN = "Enterprise"
PLAN_LIMITS = {DEFAULT_PLAN: (100, 1_000_000)}

_INVALID_FILE_HINT = "Use an MP3, WAV, or M4A sample of 11-40 seconds, at most 50MB."

_log = EventLogger("clone_registry")


@dataclass(frozen=True, slots=True)
class AudioUpload:
    """A local voice sample selected for upload.

    Attributes:
        path: Local file path.
        content_type: Declared MIME type.
        size_bytes: File size in bytes.
    """

    path: Path
    content_type: str
    size_bytes: int

    @classmethod
    def from_path(cls, path: Path, content_type: str | None = None) -> "AudioUpload":
        """Describe a local file, inferring its MIME type from the suffix."""

        resolved_type = normalize_optional_string(content_type) or AUDIO_TYPES_BY_SUFFIX.get(
            path.suffix.lower(), "application/octet-stream"
        )
        size_bytes = path.stat().st_size if path.is_file() else 0
        return cls(path=path, content_type=resolved_type, size_bytes=size_bytes)


def _wav_duration_seconds(path: Path) -> float:
    """Return WAV duration from the file header."""

    try:
        with wave.open(str(path), "rb") as wav_file:
            frame_count = wav_file.getnframes()
            sample_rate = wav_file.getframerate()
    except (wave.Error, EOFError, OSError) as exc:
        raise ValidationError(
            f"Audio file `{path.name}` is not a readable WAV file.",
            field="audio",
            hint=_INVALID_FILE_HINT,
        ) from exc
    if sample_rate <= 0:
        raise ValidationError(
            f"Audio file `{path.name}` has an invalid sample rate.",
            field="audio",
            hint=_INVALID_FILE_HINT,
        )
    return frame_count / float(sample_rate)


def validate_audio_upload(upload: AudioUpload) -> None:
    """Validate sample type and size; check duration for WAV samples."""

    if not upload.path.is_file():
        raise ValidationError(f"Audio file not found: `{upload.path}`.", field="audio")
    if upload.content_type not in ALLOWED_AUDIO_TYPES:
        raise ValidationError(
            "Invalid file format. Please choose MP3, WAV, or M4A.",
            field="audio",
            hint=_INVALID_FILE_HINT,
        )
    if upload.size_bytes > MAX_AUDIO_BYTES:
        raise ValidationError(
            "File size must not exceed 50MB.",
            field="audio",
            hint=_INVALID_FILE_HINT,
        )
    if upload.content_type == "audio/wav":
        duration = _wav_duration_seconds(upload.path)
        if not MIN_SAMPLE_SECONDS <= duration <= MAX_SAMPLE_SECONDS:
            raise ValidationError(
                f"Audio duration {duration:.1f}s is outside 11-40 seconds.",
                field="audio",
                hint=_INVALID_FILE_HINT,
            )


def clone_from_row(row: Mapping[str, Any]) -> VoiceClone:
    """Build a `VoiceClone` from a table row, rejecting malformed rows."""

    clone_id = normalize_optional_string(row.get("id"))
    name = normalize_optional_string(row.get("name"))
    status = row.get("status")
    if clone_id is None or name is None or status not in CLONE_STATUSES:
        raise TransportError("Clone registry returned a malformed clone row.")
    return VoiceClone(
        id=clone_id,
        name=name,
        description=normalize_optional_string(row.get("description")),
        created_at=str(row.get("created_at", "")),
        character_usage=int(row.get("character_usage") or 0),
        status=status,
    )


def summarize_usage(clones: list[VoiceClone], plan: str = DEFAULT_PLAN) -> UserUsage:
    """Summarize clone count and character usage against plan limits."""

    clone_limit, character_limit = PLAN_LIMITS.get(plan, PLAN_LIMITS[DEFAULT_PLAN])
    return UserUsage(
        plan=plan,
        voice_clone_count=len(clones),
        voice_clone_limit=clone_limit,
        character_count=sum(clone.character_usage for clone in clones),
        character_limit=character_limit,
    )


class VoiceCloneRegistry:
    """Create and list clones owned by the session identity."""

    def __init__(
        self,
        session: Session,
        *,
        backend: PlatformBackend | None,
        credential_store: CredentialStore,
    ) -> None:
        """Bind the registry to a session and its credential store."""

        self.session = session
        self.backend = backend
        self.credential_store = credential_store

    def list(self) -> list[VoiceClone]:
        """Return the identity's clones, newest first."""

        identity = require_identity(self.session, "view voice clones")
        backend = require_backend(self.backend)
        try:
            rows = backend.select_rows(
                CLONES_TABLE,
                access_token=identity.access_token,
                filters={"user_id": identity.user_id},
                order="created_at.desc",
            )
        except BackendError as exc:
            raise to_dashboard_error(exc) from exc
        return [clone_from_row(row) for row in rows]

    def create(
        self,
        name: str,
        description: str | None,
        audio: AudioUpload,
    ) -> VoiceClone:
        """Upload a sample and create a `processing` clone record."""

        identity = require_identity(self.session, "create a voice clone")
        backend = require_backend(self.backend)
        if self.credential_store.get(PROVIDER_ELEVENLABS) is None:
            raise MissingCredentialError(
                "Please set your ElevenLabs API key before creating a voice clone.",
                provider_id=PROVIDER_ELEVENLABS,
                hint="Run `voicedash credentials --provider elevenlabs --set-api-key`.",
            )
        validate_audio_upload(audio)
        clone_name = normalize_optional_string(name)
        if clone_name is None:
            raise ValidationError("Please enter a voice clone name.", field="name")

        if any(clone.name.casefold() == clone_name.casefold() for clone in self.list()):
            raise ConflictError(f"A voice clone named `{clone_name}` already exists.")

        object_path = f"{identity.user_id}/{uuid.uuid4().hex}{audio.path.suffix.lower()}"
        try:
            sample_key = backend.upload_object(
                SAMPLES_BUCKET,
                object_path,
                audio.path.read_bytes(),
                content_type=audio.content_type,
                access_token=identity.access_token,
            )
        except BackendError as exc:
            _log.error("upload_failed", failure_kind=exc.failure_kind)
            raise to_dashboard_error(exc) from exc

        try:
            row = backend.insert_row(
                CLONES_TABLE,
                {
                    "user_id": identity.user_id,
                    "name": clone_name,
                    "description": normalize_optional_string(description),
                    "status": CLONE_STATUS_PROCESSING,
                    "character_usage": 0,
                    "sample_path": sample_key,
                },
                access_token=identity.access_token,
            )
        except BackendError as exc:
            _log.error("create_failed", failure_kind=exc.failure_kind)
            self._discard_sample(backend, object_path, identity.access_token)
            raise to_dashboard_error(exc) from exc

        clone = clone_from_row(row)
        _log.info("created", clone_id=clone.id, size_bytes=audio.size_bytes)
        return clone

    @staticmethod
    def _discard_sample(backend: PlatformBackend, object_path: str, access_token: str) -> None:
        """Delete an uploaded sample whose clone record was never created."""

        try:
            backend.delete_object(SAMPLES_BUCKET, object_path, access_token=access_token)
        except BackendError as exc:
            _log.warning(
                "sample_cleanup_failed",
                failure_kind=exc.failure_kind,
                object_path=object_path,
            )
