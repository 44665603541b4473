"""TTS job history backed by the platform `tts_jobs` table.

Responsibilities:
- List the signed-in user's jobs, newest first.
- Record accepted submissions as `processing` jobs.
- Enforce monotonic job status: terminal jobs never change.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping

from ..backend.client import BackendError, PlatformBackend, to_dashboard_error
from ..errors import ConflictError, TransportError, ValidationError
from ..models.datatypes import (
    JOB_STATUS_PROCESSING,
    JOB_STATUSES,
    SOURCE_KINDS,
    TtsJob,
)
from ..parsing import normalize_optional_string
from ..session import Identity, Session, require_backend, require_identity
from ..telemetry.logger import EventLogger
from .form import SubmissionPayload
from .sources import ContentSource


JOBS_TABLE = "tts_jobs"

_log = EventLogger("job_history")


def advance_job_status(job: TtsJob, status: str, audio_url: str | None = None) -> TtsJob:
    """Return `job` moved to `status`, rejecting changes to terminal jobs."""

    if status not in JOB_STATUSES:
        raise ValidationError(f"Unsupported job status `{status}`.", field="status")
    if job.is_terminal:
        if status == job.status and audio_url in (None, job.audio_url):
            return job
        raise ConflictError(f"Job `{job.id}` is already {job.status} and cannot change.")
    return replace(job, status=status, audio_url=audio_url or job.audio_url)


def job_from_row(row: Mapping[str, Any]) -> TtsJob:
    """Build a `TtsJob` from a table row, rejecting malformed rows."""

    status = row.get("status")
    source_kind = row.get("source_kind")
    job_id = normalize_optional_string(row.get("id"))
    if job_id is None or status not in JOB_STATUSES or source_kind not in SOURCE_KINDS:
        raise TransportError("Job history returned a malformed job row.")
    row_count = row.get("row_count")
    return TtsJob(
        id=job_id,
        created_at=str(row.get("created_at", "")),
        voice_label=str(row.get("voice_label", "")),
        source_kind=source_kind,
        character_count=int(row.get("character_count") or 0),
        row_count=int(row_count) if row_count is not None else None,
        status=status,
        audio_url=normalize_optional_string(row.get("audio_url")),
    )


class JobHistory:
    """Read and append jobs for one identity."""

    def __init__(self, backend: PlatformBackend, identity: Identity) -> None:
        """Bind the history to a platform client and identity."""

        self.backend = backend
        self.identity = identity

    def list_jobs(self) -> list[TtsJob]:
        """Return the identity's jobs, newest first."""

        try:
            rows = self.backend.select_rows(
                JOBS_TABLE,
                access_token=self.identity.access_token,
                filters={"user_id": self.identity.user_id},
                order="created_at.desc",
            )
        except BackendError as exc:
            raise to_dashboard_error(exc) from exc
        return [job_from_row(row) for row in rows]

    def record_submission(
        self,
        payload: SubmissionPayload,
        content: ContentSource,
        voice_label: str,
    ) -> TtsJob:
        """Store an accepted submission as a `processing` job."""

        row = {
            "user_id": self.identity.user_id,
            "voice_label": voice_label,
            "voice_source": payload.voice.source,
            "source_kind": payload.source_kind,
            "character_count": content.character_count,
            "row_count": content.row_count,
            "language": payload.language,
            "segment_size": payload.segment_size,
            "status": JOB_STATUS_PROCESSING,
        }
        try:
            stored = self.backend.insert_row(
                JOBS_TABLE,
                row,
                access_token=self.identity.access_token,
            )
        except BackendError as exc:
            raise to_dashboard_error(exc) from exc
        job = job_from_row(stored)
        _log.info("recorded", job_id=job.id, characters=job.character_count)
        return job

    def update_status(self, job: TtsJob, status: str, audio_url: str | None = None) -> TtsJob:
        """Persist a status transition allowed by `advance_job_status`."""

        updated = advance_job_status(job, status, audio_url)
        if updated is job:
            return job
        try:
            self.backend.update_rows(
                JOBS_TABLE,
                {"status": updated.status, "audio_url": updated.audio_url},
                access_token=self.identity.access_token,
                filters={"id": job.id, "user_id": self.identity.user_id},
            )
        except BackendError as exc:
            raise to_dashboard_error(exc) from exc
        _log.info("status_changed", job_id=job.id, status=updated.status)
        return updated


def create_job_history(session: Session, backend: PlatformBackend | None) -> JobHistory:
    """Create the job history for a signed-in session."""

    identity = require_identity(session, "view job history")
    return JobHistory(require_backend(backend), identity)
