"""Google Cloud Text-to-Speech voice listing client.

Responsibilities:
- Issue the single voice-listing GET with the API key as a query parameter.
- Parse the `voices` payload into `VoiceCatalogEntry` records.
- Classify failures into missing key, invalid key, and transport errors.
"""

from __future__ import annotations

import json
import re
import socket
from typing import Any

import requests

from ..errors import InvalidCredentialError, MissingCredentialError, TransportError
from ..models.datatypes import (
    GENDER_NEUTRAL,
    GENDERS,
    PROVIDER_GOOGLE,
    VoiceCatalogEntry,
)
from ..parsing import normalize_optional_string
from ..telemetry.logger import EventLogger


DEFAULT_BASE_URL = "https://texttospeech.googleapis.com/v1"
INVALID_KEY_MARKER = "api key not valid"
INVALID_KEY_MESSAGE = "The provided Google API Key is invalid."

_log = EventLogger("google_tts")


def parse_voices_payload(payload: Any) -> list[VoiceCatalogEntry]:
    """Parse a voice-listing body into catalog entries.

    Entries without a name or language list make the body malformed. Unknown
    gender values normalize to `NEUTRAL`. Duplicate names keep the first entry.

    Raises:
        TransportError: If the payload is not a well-formed voice list.
    """

    if not isinstance(payload, dict):
        raise TransportError("Google voice listing returned a non-object payload.")
    raw_voices = payload.get("voices", [])
    if not isinstance(raw_voices, list):
        raise TransportError("Google voice listing `voices` field is not a list.")

    entries: list[VoiceCatalogEntry] = []
    seen_names: set[str] = set()
    for index, raw_voice in enumerate(raw_voices):
        if not isinstance(raw_voice, dict):
            raise TransportError(f"Google voice entry {index} is not an object.")
        name = normalize_optional_string(raw_voice.get("name"))
        language_codes = raw_voice.get("languageCodes")
        if name is None or not isinstance(language_codes, list):
            raise TransportError(
                f"Google voice entry {index} is missing `name` or `languageCodes`."
            )
        if name in seen_names:
            _log.warning("duplicate_voice", name=name)
            continue
        seen_names.add(name)

        gender = str(raw_voice.get("ssmlGender", "")).upper()
        if gender not in GENDERS:
            gender = GENDER_NEUTRAL
        sample_rate = raw_voice.get("naturalSampleRateHertz", 0)
        if isinstance(sample_rate, bool) or not isinstance(sample_rate, int):
            sample_rate = 0

        entries.append(
            VoiceCatalogEntry(
                name=name,
                language_codes=tuple(
                    code for code in map(normalize_optional_string, language_codes) if code
                ),
                gender=gender,
                natural_sample_rate_hertz=sample_rate,
            )
        )
    return entries


class GoogleTtsClient:
    """Minimal requests-based client for the cloud TTS voice listing."""

    _MAX_PROVIDER_MESSAGE_CHARS = 180

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 30.0,
    ) -> None:
        """Initialize endpoint settings."""

        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def list_voices(self, api_key: str | None) -> list[VoiceCatalogEntry]:
        """Return the voice catalog available to an API key."""

        return parse_voices_payload(self.list_voices_payload(api_key))

    def list_voices_payload(self, api_key: str | None) -> dict[str, Any]:
        """Return the raw voice-listing JSON object for an API key."""

        key = normalize_optional_string(api_key)
        if key is None:
            raise MissingCredentialError(
                "Google Cloud API key is not configured.",
                provider_id=PROVIDER_GOOGLE,
                hint="Run `voicedash credentials --provider google --set-api-key`.",
            )

        _log.info("list_voices_start")
        try:
            response = requests.get(
                f"{self.base_url}/voices",
                params={"key": key},
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            if isinstance(exc, requests.Timeout | socket.timeout):
                raise TransportError("Google voice listing timed out.") from exc
            raise TransportError(
                "Google voice listing transport error: "
                f"{self._short_message(self._redact(str(exc), key))}"
            ) from exc

        body = bytes(response.content).decode("utf-8", errors="replace").strip()
        try:
            payload = json.loads(body) if body else None
        except json.JSONDecodeError:
            payload = None

        if response.status_code >= 400:
            raise self._failure_to_error(response, payload, key)
        if not isinstance(payload, dict):
            raise TransportError(
                "Google voice listing returned invalid JSON payload.",
                status_code=response.status_code,
            )
        parse_voices_payload(payload)
        _log.info("list_voices_complete", status_code=response.status_code)
        return payload

    @classmethod
    def _failure_to_error(
        cls,
        response: requests.Response,
        payload: Any,
        api_key: str,
    ) -> InvalidCredentialError | TransportError:
        """Classify a non-success response."""

        message = ""
        if isinstance(payload, dict):
            error_payload = payload.get("error")
            if isinstance(error_payload, dict):
                message = normalize_optional_string(error_payload.get("message")) or ""
        if not message:
            reason = normalize_optional_string(getattr(response, "reason", None))
            message = f"Google API Error: {reason or f'HTTP {response.status_code}'}"

        if INVALID_KEY_MARKER in message.lower():
            _log.warning("invalid_key", status_code=response.status_code)
            return InvalidCredentialError(
                INVALID_KEY_MESSAGE,
                hint="Update the key with `voicedash credentials --provider google --set-api-key`.",
            )
        _log.error("list_voices_failed", status_code=response.status_code)
        return TransportError(
            cls._short_message(cls._redact(message, api_key)),
            status_code=response.status_code,
        )

    @staticmethod
    def _redact(text: str, api_key: str) -> str:
        """Redact the request key and key-like tokens from provider text."""

        redacted = text.replace(api_key, "[redacted-key]") if api_key else text
        return re.sub(r"\bAIza[0-9A-Za-z_-]{10,}", "[redacted-key]", redacted)

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize and cap user-facing provider message length."""

        compact = " ".join(text.split())
        if len(compact) <= cls._MAX_PROVIDER_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_PROVIDER_MESSAGE_CHARS - 1]}..."
