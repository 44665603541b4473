"""Voice catalog retrieval with explicit loading state.

Responsibilities:
- Resolve the provider key for the session and fetch the voice listing,
  directly for anonymous sessions or through the delegated platform function
  for authenticated ones.
- Track `uninitialized -> loading -> loaded|failed` state with a generation id
  so responses from superseded fetches are discarded.

Key types:
- `DirectCatalogSource`, `DelegatedCatalogSource`: session-specific loaders.
- `VoiceCatalogFetcher`: state machine around one loader.
- `CatalogSnapshot`: immutable view of the fetcher state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ..backend.client import BackendError, FunctionResponse, PlatformBackend
from ..credentials import CredentialStore
from ..errors import (
    DashboardError,
    InvalidCredentialError,
    MissingCredentialError,
    TransportError,
    UnauthenticatedError,
    ValidationError,
)
from ..models.datatypes import PROVIDER_GOOGLE, VoiceCatalogEntry
from ..parsing import normalize_optional_string
from ..providers.google_tts import (
    INVALID_KEY_MARKER,
    INVALID_KEY_MESSAGE,
    GoogleTtsClient,
    parse_voices_payload,
)
from ..session import AuthenticatedSession, Identity, Session, require_backend
from ..telemetry.logger import EventLogger


VOICES_FUNCTION_NAME = "google-tts-voices"

STATE_UNINITIALIZED = "uninitialized"
STATE_LOADING = "loading"
STATE_LOADED = "loaded"
STATE_FAILED = "failed"

_MISSING_KEY_HINT = "Run `voicedash credentials --provider google --set-api-key`."

_log = EventLogger("catalog")


class CatalogSource(Protocol):
    """Loader returning the full voice catalog or raising a dashboard error."""

    def load(self) -> list[VoiceCatalogEntry]:
        """Fetch and parse the provider voice listing."""


@dataclass(slots=True)
class DirectCatalogSource:
    """Anonymous loader: reads the local key and calls the provider itself."""

    credential_store: CredentialStore
    client: GoogleTtsClient

    def load(self) -> list[VoiceCatalogEntry]:
        """Resolve the local key, then fetch the listing."""

        api_key = self.credential_store.get(PROVIDER_GOOGLE)
        if api_key is None:
            raise MissingCredentialError(
                "Google Cloud API key is not configured.",
                provider_id=PROVIDER_GOOGLE,
                hint=_MISSING_KEY_HINT,
            )
        return self.client.list_voices(api_key)


@dataclass(slots=True)
class DelegatedCatalogSource:
    """Authenticated loader: the platform function resolves the key server-side."""

    backend: PlatformBackend
    identity: Identity
    function_name: str = VOICES_FUNCTION_NAME

    def load(self) -> list[VoiceCatalogEntry]:
        """Invoke the delegated function and parse its voice listing."""

        try:
            response = self.backend.invoke_function(
                self.function_name,
                access_token=self.identity.access_token,
            )
        except BackendError as exc:
            raise TransportError(str(exc), status_code=exc.status_code) from exc

        if 200 <= response.status_code < 300:
            return parse_voices_payload(response.payload)
        raise classify_function_error(response)


def classify_function_error(response: FunctionResponse) -> DashboardError:
    """Map a delegated-function error body to a dashboard error.

    The `kind` field is preferred; bodies without one are classified by status
    code and message text.
    """

    message = ""
    kind = None
    if isinstance(response.payload, dict):
        message = normalize_optional_string(response.payload.get("error")) or ""
        kind = normalize_optional_string(response.payload.get("kind"))
    lowered = message.lower()

    if kind is None:
        if response.status_code == 401:
            kind = UnauthenticatedError.kind
        elif INVALID_KEY_MARKER in lowered or ("key" in lowered and "invalid" in lowered):
            kind = InvalidCredentialError.kind
        elif response.status_code == 400 and "not found" in lowered:
            kind = MissingCredentialError.kind
        else:
            kind = TransportError.kind

    if kind == MissingCredentialError.kind:
        return MissingCredentialError(
            message or "Google Cloud API key is not configured.",
            provider_id=PROVIDER_GOOGLE,
            hint=_MISSING_KEY_HINT,
        )
    if kind == InvalidCredentialError.kind:
        return InvalidCredentialError(message or INVALID_KEY_MESSAGE, hint=_MISSING_KEY_HINT)
    if kind == UnauthenticatedError.kind:
        return UnauthenticatedError(
            message or "User not authenticated",
            hint="Run `voicedash login` and retry.",
        )
    return TransportError(
        message or f"Voice listing function failed (HTTP {response.status_code}).",
        status_code=response.status_code,
    )


@dataclass(frozen=True, slots=True)
class CatalogSnapshot:
    """Immutable view of one fetcher state.

    Attributes:
        state: One of the `STATE_*` constants.
        generation: Generation id of the latest started fetch.
        voices: Loaded catalog, empty unless `state` is loaded.
        error: Failure of the latest fetch, when `state` is failed.
    """

    state: str
    generation: int
    voices: tuple[VoiceCatalogEntry, ...] = ()
    error: DashboardError | None = None


class VoiceCatalogFetcher:
    """Fetch state machine for one provider voice catalog."""

    def __init__(self, source: CatalogSource, provider_id: str = PROVIDER_GOOGLE) -> None:
        """Initialize in the uninitialized state."""

        self.source = source
        self.provider_id = provider_id
        self._snapshot = CatalogSnapshot(state=STATE_UNINITIALIZED, generation=0)

    @property
    def snapshot(self) -> CatalogSnapshot:
        """Return the current state snapshot."""

        return self._snapshot

    @property
    def has_failed(self) -> bool:
        """Return whether the latest fetch failed."""

        return self._snapshot.state == STATE_FAILED

    def begin(self) -> int:
        """Start a fetch and return its generation id."""

        generation = self._snapshot.generation + 1
        self._snapshot = CatalogSnapshot(state=STATE_LOADING, generation=generation)
        _log.info("fetch_start", provider=self.provider_id, generation=generation)
        return generation

    def resolve(self, generation: int, voices: list[VoiceCatalogEntry]) -> bool:
        """Record a successful fetch unless a newer fetch superseded it."""

        if generation != self._snapshot.generation:
            _log.info("stale_discarded", provider=self.provider_id, generation=generation)
            return False
        self._snapshot = CatalogSnapshot(
            state=STATE_LOADED,
            generation=generation,
            voices=tuple(voices),
        )
        _log.info("fetch_complete", provider=self.provider_id, voices=len(voices))
        return True

    def reject(self, generation: int, error: DashboardError) -> bool:
        """Record a failed fetch unless a newer fetch superseded it."""

        if generation != self._snapshot.generation:
            _log.info("stale_discarded", provider=self.provider_id, generation=generation)
            return False
        self._snapshot = CatalogSnapshot(
            state=STATE_FAILED,
            generation=generation,
            error=error,
        )
        _log.warning("fetch_failed", provider=self.provider_id, error_kind=error.kind)
        return True

    def refresh(self) -> CatalogSnapshot:
        """Run one complete fetch and return the resulting snapshot.

        Every fetch ends loaded or failed; unexpected source exceptions are
        recorded as transport failures.
        """

        generation = self.begin()
        try:
            voices = self.source.load()
        except DashboardError as exc:
            self.reject(generation, exc)
        except Exception as exc:
            self.reject(
                generation,
                TransportError(f"Voice list request failed: {type(exc).__name__}: {exc}"),
            )
        else:
            self.resolve(generation, voices)
        return self._snapshot

    def fetch(self) -> list[VoiceCatalogEntry]:
        """Refresh and return the voices, raising the classified failure."""

        snapshot = self.refresh()
        if snapshot.error is not None:
            raise snapshot.error
        return list(snapshot.voices)


def create_catalog_fetcher(
    session: Session,
    *,
    provider_id: str,
    credential_store: CredentialStore,
    google_client: GoogleTtsClient,
    backend: PlatformBackend | None = None,
) -> VoiceCatalogFetcher:
    """Create a catalog fetcher whose loader matches the session variant."""

    if provider_id != PROVIDER_GOOGLE:
        raise ValidationError(
            f"Provider `{provider_id}` has no voice catalog.",
            field="provider",
            hint=f"Use `{PROVIDER_GOOGLE}`.",
        )
    if isinstance(session, AuthenticatedSession):
        source: CatalogSource = DelegatedCatalogSource(
            backend=require_backend(backend),
            identity=session.identity,
        )
    else:
        source = DirectCatalogSource(credential_store=credential_store, client=google_client)
    return VoiceCatalogFetcher(source, provider_id=provider_id)
