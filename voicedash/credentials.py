"""Provider credential storage for the dashboard.

Responsibilities:
- Resolve and persist provider API keys for the current session.
- Keep anonymous keys on this device and authenticated keys in the per-user
  platform table keyed by `(user_id, provider)`.
- Treat absence as a normal result; never raise from `get`.
- Avoid logging or exposing secret values in diagnostics.

Key types:
- `CredentialStore`: interface for provider credential persistence.
- `LocalCredentialStore`: device-local store under fixed per-provider keys.
- `RemoteCredentialStore`: platform-backed per-user store.
"""

from __future__ import annotations

from dataclasses import dataclass

from .backend.client import BackendError, PlatformBackend
from .errors import ValidationError
from .io.local_store import KeyValueStore
from .models.datatypes import (
    PROVIDER_ELEVENLABS,
    PROVIDER_GOOGLE,
    PROVIDER_IDS,
    ProviderCredential,
)
from .parsing import normalize_optional_string
from .session import AuthenticatedSession, Identity, Session, require_backend
from .telemetry.logger import EventLogger


CREDENTIALS_TABLE = "provider_credentials"

LOCAL_STORAGE_KEYS = {
    PROVIDER_ELEVENLABS: "elevenLabsApiKey",
    PROVIDER_GOOGLE: "geminiApiKey",
}

_log = EventLogger("credentials")


def validate_provider_id(provider_id: str) -> str:
    """Return a normalized provider id or raise for unknown providers."""

    normalized = (normalize_optional_string(provider_id) or "").lower()
    if normalized not in PROVIDER_IDS:
        supported = ", ".join(PROVIDER_IDS)
        raise ValidationError(
            f"Unsupported provider `{provider_id}`.",
            field="provider",
            hint=f"Use one of: {supported}.",
        )
    return normalized


def mask_secret(value: str | None) -> str:
    """Render a stored key for display without revealing it."""

    normalized = normalize_optional_string(value)
    if normalized is None:
        return "not set"
    return f"****-****-****-{normalized[-4:]}"


class CredentialStore:
    """Interface for provider credential operations."""

    def get(self, provider_id: str) -> str | None:
        """Return the stored key for a provider, or `None` when absent."""

        raise NotImplementedError

    def set(self, provider_id: str, api_key: str) -> bool:
        """Persist a provider key and return whether the write succeeded."""

        raise NotImplementedError


def _normalized_key(api_key: str) -> str:
    """Return a stripped non-empty key or raise a validation error."""

    normalized = normalize_optional_string(api_key)
    if normalized is None:
        raise ValidationError("API key must be a non-empty string.", field="api_key")
    return normalized


@dataclass(slots=True)
class LocalCredentialStore(CredentialStore):
    """Credential store scoped to this device."""

    store: KeyValueStore

    def get(self, provider_id: str) -> str | None:
        """Read a provider key from local storage."""

        storage_key = LOCAL_STORAGE_KEYS[validate_provider_id(provider_id)]
        try:
            value = self.store.get(storage_key)
        except Exception as exc:
            _log.warning("local_read_failed", provider=provider_id, error_type=type(exc).__name__)
            return None
        return normalize_optional_string(value)

    def set(self, provider_id: str, api_key: str) -> bool:
        """Write a provider key to local storage."""

        provider = validate_provider_id(provider_id)
        normalized = _normalized_key(api_key)
        try:
            self.store.set(LOCAL_STORAGE_KEYS[provider], normalized)
        except Exception as exc:
            _log.error("local_write_failed", provider=provider, error_type=type(exc).__name__)
            return False
        _log.info("local_write", provider=provider)
        return True


@dataclass(slots=True)
class RemoteCredentialStore(CredentialStore):
    """Credential store backed by the per-user platform table."""

    backend: PlatformBackend
    identity: Identity

    def get(self, provider_id: str) -> str | None:
        """Read the identity's key for a provider from the platform."""

        provider = validate_provider_id(provider_id)
        try:
            rows = self.backend.select_rows(
                CREDENTIALS_TABLE,
                access_token=self.identity.access_token,
                filters={"user_id": self.identity.user_id, "provider": provider},
                columns="api_key",
            )
        except BackendError as exc:
            _log.warning("remote_read_failed", provider=provider, failure_kind=exc.failure_kind)
            return None
        if not rows:
            return None
        return normalize_optional_string(rows[0].get("api_key"))

    def set(self, provider_id: str, api_key: str) -> bool:
        """Upsert the identity's key for a provider."""

        provider = validate_provider_id(provider_id)
        normalized = _normalized_key(api_key)
        try:
            self.backend.upsert_row(
                CREDENTIALS_TABLE,
                {
                    "user_id": self.identity.user_id,
                    "provider": provider,
                    "api_key": normalized,
                },
                access_token=self.identity.access_token,
                on_conflict="user_id,provider",
            )
        except BackendError as exc:
            _log.error("remote_write_failed", provider=provider, failure_kind=exc.failure_kind)
            return False
        _log.info("remote_write", provider=provider, user_id=self.identity.user_id)
        return True


def create_credential_store(
    session: Session,
    *,
    local_store: KeyValueStore,
    backend: PlatformBackend | None = None,
) -> CredentialStore:
    """Create the credential store matching the session variant."""

    if isinstance(session, AuthenticatedSession):
        return RemoteCredentialStore(
            backend=require_backend(backend),
            identity=session.identity,
        )
    return LocalCredentialStore(store=local_store)


def stored_credentials(store: CredentialStore) -> list[ProviderCredential]:
    """Return the keys currently stored for every known provider."""

    credentials = []
    for provider_id in PROVIDER_IDS:
        api_key = store.get(provider_id)
        if api_key is not None:
            credentials.append(ProviderCredential(provider_id=provider_id, api_key=api_key))
    return credentials
