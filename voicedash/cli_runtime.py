"""CLI runtime resolution helpers.

This module isolates config loading, access-token precedence, session
resolution, and collaborator construction from the command wiring layer.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping

from .backend.client import PlatformBackend
from .clones.registry import VoiceCloneRegistry
from .config import ConfigLoader, DashboardConfig
from .credentials import CredentialStore, create_credential_store
from .errors import ValidationError
from .io.local_store import KeyValueStore, create_local_store
from .jobs.history import JobHistory, create_job_history
from .models.datatypes import PROVIDER_GOOGLE
from .parsing import normalize_optional_string
from .session import SESSION_TOKEN_KEY, Session, resolve_session
from .telemetry.logger import EventLogger
from .voices.catalog import VoiceCatalogFetcher, create_catalog_fetcher


_log = EventLogger("cli_runtime")


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Global options captured by the CLI callback."""

    config_path: Path | None = None
    access_token: str | None = None
    verbose: bool = False


def load_runtime_config(
    config_path: Path | None,
    env: Mapping[str, str],
) -> DashboardConfig:
    """Load config and map loader failures to validation errors."""

    try:
        return ConfigLoader.load(config_path, env)
    except FileNotFoundError as exc:
        raise ValidationError(
            f"Config file not found: `{config_path}`.",
            field="config",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise ValidationError(
            f"Invalid configuration: {exc}",
            field="config",
            hint="Fix config values and rerun.",
        ) from exc


def resolve_access_token(
    cli_token: str | None,
    local_store: KeyValueStore,
    config: DashboardConfig,
) -> str | None:
    """Resolve the access token: CLI option, then stored session, then config."""

    token = normalize_optional_string(cli_token)
    if token is not None:
        return token
    try:
        stored = normalize_optional_string(local_store.get(SESSION_TOKEN_KEY))
    except Exception as exc:
        _log.warning("session_read_failed", error_type=type(exc).__name__)
        stored = None
    if stored is not None:
        return stored
    return config.access_token


@dataclass(slots=True)
class DashboardRuntime:
    """Resolved collaborators for one CLI invocation.

    The session is resolved on first use so commands that never touch the
    platform do not require one.
    """

    config: DashboardConfig
    local_store: KeyValueStore
    backend: PlatformBackend | None
    access_token: str | None
    _session: Session | None = field(default=None, repr=False)

    def session(self) -> Session:
        """Return the resolved session, verifying the token once."""

        if self._session is None:
            self._session = resolve_session(self.access_token, self.backend)
        return self._session

    def credential_store(self) -> CredentialStore:
        """Return the credential store for the session variant."""

        return create_credential_store(
            self.session(),
            local_store=self.local_store,
            backend=self.backend,
        )

    def catalog_fetcher(self, provider_id: str = PROVIDER_GOOGLE) -> VoiceCatalogFetcher:
        """Return the catalog fetcher for the session variant."""

        return create_catalog_fetcher(
            self.session(),
            provider_id=provider_id,
            credential_store=self.credential_store(),
            google_client=self.config.create_google_client(),
            backend=self.backend,
        )

    def clone_registry(self) -> VoiceCloneRegistry:
        """Return the clone registry bound to the session."""

        return VoiceCloneRegistry(
            self.session(),
            backend=self.backend,
            credential_store=self.credential_store(),
        )

    def job_history(self) -> JobHistory:
        """Return the job history for a signed-in session."""

        return create_job_history(self.session(), self.backend)


def build_runtime(
    options: CliOptions,
    env: Mapping[str, str] | None = None,
    local_store_factory: Callable[[str], KeyValueStore] = create_local_store,
) -> DashboardRuntime:
    """Resolve config, local storage, platform client, and access token."""

    config = load_runtime_config(options.config_path, os.environ if env is None else env)
    local_store = local_store_factory(config.keyring_service)
    return DashboardRuntime(
        config=config,
        local_store=local_store,
        backend=config.create_backend(),
        access_token=resolve_access_token(options.access_token, local_store, config),
    )
