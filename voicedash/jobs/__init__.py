"""TTS job submission, content loading, and history."""

from .form import JobFormInput, JobSubmissionForm, SubmissionPayload, VoiceReference
from .history import JobHistory, advance_job_status, create_job_history
from .sources import ContentSource, load_content_source

__all__ = [
    "ContentSource",
    "JobFormInput",
    "JobHistory",
    "JobSubmissionForm",
    "SubmissionPayload",
    "VoiceReference",
    "advance_job_status",
    "create_job_history",
    "load_content_source",
]
