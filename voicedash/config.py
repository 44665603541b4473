"""Configuration model and loaders for voicedash.

Responsibilities:
- Define dashboard runtime configuration as a typed dataclass.
- Load configuration from YAML files and environment variables with
  deterministic precedence (CLI > env > YAML > defaults).
- Build platform and provider clients from resolved settings.

Key types:
- `DashboardConfig`: normalized runtime settings.
- `ConfigLoader`: static construction helpers for `DashboardConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from .backend.client import PlatformBackend
from .errors import ValidationError
from .parsing import normalize_optional_string, parse_integer, parse_positive_number
from .providers.google_tts import DEFAULT_BASE_URL, GoogleTtsClient
from .telemetry.logger import EventLogger
from .voices.filtering import normalize_gender_filter


_PLACEHOLDER_BACKEND_MARKER = "your-project-id"

_log = EventLogger("config")


@dataclass(slots=True)
class DashboardConfig:
    """Runtime configuration for dashboard commands.

    Attributes:
        backend_url: Platform project URL; required for signed-in use.
        backend_anon_key: Platform project anon key; required for signed-in use.
        google_api_base_url: Cloud TTS REST base URL.
        request_timeout_seconds: Timeout applied to every outbound request.
        keyring_service: Keyring service name for device-local storage.
        default_language_filter: Initial language filter for voice listing.
        default_gender_filter: Initial gender filter (`ALL` for every gender).
        default_output_language: Output language label for submissions.
        segment_size: Default segment size for submissions.
        access_token: Optional platform access token.
    """

    backend_url: str | None = None
    backend_anon_key: str | None = None
    google_api_base_url: str = DEFAULT_BASE_URL
    request_timeout_seconds: float = 30.0
    keyring_service: str = "voicedash"
    default_language_filter: str = "vi-VN"
    default_gender_filter: str = "ALL"
    default_output_language: str = "Vietnamese"
    segment_size: int = 300
    access_token: str | None = None

    @property
    def backend_configured(self) -> bool:
        """Return whether both platform URL and anon key are set."""

        return self.backend_url is not None and self.backend_anon_key is not None

    def validate(self) -> None:
        """Validate configuration values before use."""

        if self.request_timeout_seconds <= 0:
            raise ValueError("`request_timeout_seconds` must be a positive number.")
        if self.segment_size <= 0:
            raise ValueError("`segment_size` must be a positive integer.")
        if (self.backend_url is None) != (self.backend_anon_key is None):
            raise ValueError("`backend_url` and `backend_anon_key` must be set together.")
        try:
            self.default_gender_filter = normalize_gender_filter(self.default_gender_filter)
        except ValidationError as exc:
            raise ValueError(exc.detail) from exc
        if self.backend_url is not None and _PLACEHOLDER_BACKEND_MARKER in self.backend_url:
            _log.warning("placeholder_backend_url")

    def create_backend(self) -> PlatformBackend | None:
        """Create the platform client, or `None` when the platform is not configured."""

        if self.backend_url is None or self.backend_anon_key is None:
            return None
        return PlatformBackend(
            url=self.backend_url,
            anon_key=self.backend_anon_key,
            timeout_seconds=self.request_timeout_seconds,
        )

    def create_google_client(self) -> GoogleTtsClient:
        """Create the cloud TTS voice-listing client."""

        return GoogleTtsClient(
            base_url=self.google_api_base_url,
            timeout_seconds=self.request_timeout_seconds,
        )


class ConfigLoader:
    """Factory methods for creating `DashboardConfig` objects."""

    _FIELD_NAMES = frozenset(field.name for field in fields(DashboardConfig))
    _ENV_KEYS: dict[str, tuple[str, ...]] = {
        "backend_url": ("VOICEDASH_BACKEND_URL", "SUPABASE_URL"),
        "backend_anon_key": ("VOICEDASH_BACKEND_ANON_KEY", "SUPABASE_ANON_KEY"),
        "google_api_base_url": ("VOICEDASH_GOOGLE_API_BASE_URL",),
        "request_timeout_seconds": ("VOICEDASH_REQUEST_TIMEOUT_SECONDS",),
        "keyring_service": ("VOICEDASH_KEYRING_SERVICE",),
        "default_language_filter": ("VOICEDASH_LANGUAGE_FILTER",),
        "default_gender_filter": ("VOICEDASH_GENDER_FILTER",),
        "default_output_language": ("VOICEDASH_OUTPUT_LANGUAGE",),
        "segment_size": ("VOICEDASH_SEGMENT_SIZE",),
        "access_token": ("VOICEDASH_ACCESS_TOKEN",),
    }

    @staticmethod
    def load(config_path: Path | None, env: Mapping[str, str]) -> DashboardConfig:
        """Load YAML defaults (when given) and overlay environment values."""

        payload: dict[str, Any] = {}
        source_label = "environment"
        if config_path is not None:
            payload.update(ConfigLoader._read_yaml_mapping(config_path))
            source_label = f"config `{config_path}` with environment overrides"
        payload.update(ConfigLoader._env_values(env))
        return ConfigLoader._build_config(payload, source_label)

    @staticmethod
    def from_yaml(path: Path) -> DashboardConfig:
        """Load configuration from a YAML file."""

        payload = ConfigLoader._read_yaml_mapping(path)
        return ConfigLoader._build_config(payload, f"YAML config `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str]) -> DashboardConfig:
        """Load configuration from environment variables."""

        return ConfigLoader._build_config(ConfigLoader._env_values(env), "environment")

    @staticmethod
    def _read_yaml_mapping(path: Path) -> dict[str, Any]:
        """Read a YAML file and enforce a mapping root with supported keys."""

        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        if payload is None:
            return {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")

        unknown = sorted(set(payload).difference(ConfigLoader._FIELD_NAMES))
        if unknown:
            raise ValueError(
                f"YAML config `{path}` includes unsupported key(s): {', '.join(unknown)}."
            )
        return dict(payload)

    @staticmethod
    def _env_values(env: Mapping[str, str]) -> dict[str, str]:
        """Collect non-blank environment values, first matching name wins."""

        values: dict[str, str] = {}
        for field_name, env_keys in ConfigLoader._ENV_KEYS.items():
            for env_key in env_keys:
                value = normalize_optional_string(env.get(env_key))
                if value is not None:
                    values[field_name] = value
                    break
        return values

    @staticmethod
    def _build_config(payload: Mapping[str, Any], source_label: str) -> DashboardConfig:
        """Build a validated config from a raw mapping."""

        kwargs: dict[str, Any] = {}
        for key, raw_value in payload.items():
            try:
                if key == "request_timeout_seconds":
                    kwargs[key] = parse_positive_number(raw_value, key)
                elif key == "segment_size":
                    kwargs[key] = parse_integer(raw_value, key)
                else:
                    value = normalize_optional_string(raw_value)
                    if value is not None:
                        kwargs[key] = value
            except ValueError as exc:
                raise ValueError(f"{source_label}: {exc}") from exc

        config = DashboardConfig(**kwargs)
        try:
            config.validate()
        except ValueError as exc:
            raise ValueError(f"{source_label}: {exc}") from exc
        return config
