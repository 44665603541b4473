"""Core datatypes shared across voicedash modules.

Responsibilities:
- Represent immutable records exchanged between credential, catalog, clone,
  and job modules.
- Hold the fixed vocabularies (providers, genders, statuses, source kinds).

Key types:
- `ProviderCredential`, `VoiceCatalogEntry`, `VoiceClone`, `TtsJob`, and
  `UserUsage`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace


PROVIDER_GOOGLE = "google"
PROVIDER_ELEVENLABS = "elevenlabs"
PROVIDER_IDS = (PROVIDER_ELEVENLABS, PROVIDER_GOOGLE)

GENDER_MALE = "MALE"
GENDER_FEMALE = "FEMALE"
GENDER_NEUTRAL = "NEUTRAL"
GENDERS = (GENDER_FEMALE, GENDER_MALE, GENDER_NEUTRAL)

CLONE_STATUS_PROCESSING = "processing"
CLONE_STATUS_READY = "ready"
CLONE_STATUS_ERROR = "error"
CLONE_STATUSES = frozenset(
    {CLONE_STATUS_PROCESSING, CLONE_STATUS_READY, CLONE_STATUS_ERROR}
)

JOB_STATUS_PROCESSING = "processing"
JOB_STATUS_COMPLETED = "completed"
JOB_STATUS_FAILED = "failed"
JOB_STATUSES = frozenset({JOB_STATUS_PROCESSING, JOB_STATUS_COMPLETED, JOB_STATUS_FAILED})
TERMINAL_JOB_STATUSES = frozenset({JOB_STATUS_COMPLETED, JOB_STATUS_FAILED})

SOURCE_TEXT = "text"
SOURCE_TXT = "txt"
SOURCE_EXCEL = "excel"
SOURCE_KINDS = (SOURCE_TEXT, SOURCE_TXT, SOURCE_EXCEL)


@dataclass(frozen=True, slots=True)
class ProviderCredential:
    """A provider API key owned by one identity or one device.

    Attributes:
        provider_id: One of `PROVIDER_IDS`.
        api_key: Secret key value. Never logged.
    """

    provider_id: str
    api_key: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class VoiceCatalogEntry:
    """One synthetic voice returned by the cloud TTS voice listing.

    Attributes:
        name: Provider voice name, unique within one fetch.
        language_codes: BCP-47 language tags supported by the voice.
        gender: One of `GENDERS`.
        natural_sample_rate_hertz: Native sample rate of the voice.
    """

    name: str
    language_codes: tuple[str, ...]
    gender: str
    natural_sample_rate_hertz: int


@dataclass(frozen=True, slots=True)
class VoiceClone:
    """A user-owned cloned voice record.

    Attributes:
        id: Identifier unique per owner.
        name: Display name.
        description: Optional free-form description.
        created_at: ISO-8601 creation timestamp.
        character_usage: Cumulative characters synthesized with this clone.
        status: One of `CLONE_STATUSES`.
    """

    id: str
    name: str
    description: str | None
    created_at: str
    character_usage: int
    status: str

    def with_added_usage(self, characters: int) -> "VoiceClone":
        """Return a copy with usage increased by a non-negative character count."""

        if characters < 0:
            raise ValueError("Character usage can only increase.")
        return replace(self, character_usage=self.character_usage + characters)


@dataclass(frozen=True, slots=True)
class TtsJob:
    """One text-to-speech job shown in the job history.

    Attributes:
        id: Unique job identifier.
        created_at: ISO-8601 creation timestamp.
        voice_label: Clone name or catalog voice name used by the job.
        source_kind: One of `SOURCE_KINDS`.
        character_count: Number of characters submitted.
        row_count: Number of rows/lines for file sources.
        status: One of `JOB_STATUSES`.
        audio_url: Output audio reference once completed.
    """

    id: str
    created_at: str
    voice_label: str
    source_kind: str
    character_count: int
    row_count: int | None
    status: str
    audio_url: str | None = None

    @property
    def is_terminal(self) -> bool:
        """Return whether the job reached `completed` or `failed`."""

        return self.status in TERMINAL_JOB_STATUSES


@dataclass(frozen=True, slots=True)
class UserUsage:
    """Account usage summary shown by the `status` command.

    Attributes:
        plan: Plan label.
        voice_clone_count: Number of clones owned.
        voice_clone_limit: Maximum clones allowed by the plan.
        character_count: Characters consumed across clones.
        character_limit: Maximum characters allowed by the plan.
    """

    plan: str
    voice_clone_count: int
    voice_clone_limit: int
    character_count: int
    character_limit: int
