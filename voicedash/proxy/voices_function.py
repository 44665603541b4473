"""Server-side voice-listing function for signed-in users.

The function resolves the caller from the bearer token, reads the caller's
Google key from the credential table, and forwards one voice-listing call, so
the key never leaves the platform trust boundary.

Run it with any ASGI server, for example
`uvicorn --factory voicedash.proxy.voices_function:create_app`.
"""

from __future__ import annotations

import os
from typing import Any, Callable

from fastapi import FastAPI, Header
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..backend.client import PlatformBackend
from ..config import ConfigLoader
from ..credentials import RemoteCredentialStore
from ..errors import (
    DashboardError,
    InvalidCredentialError,
    MissingCredentialError,
    TransportError,
    UnauthenticatedError,
)
from ..models.datatypes import PROVIDER_GOOGLE
from ..providers.google_tts import INVALID_KEY_MESSAGE, GoogleTtsClient
from ..session import require_identity, resolve_session
from ..telemetry.logger import EventLogger


FUNCTION_PATH = "/google-tts-voices"
CORS_ALLOWED_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]

_log = EventLogger("voices_function")


def _error_body(message: str, kind: str) -> dict[str, str]:
    """Build the JSON error body with a machine-readable kind."""

    return {"error": message, "kind": kind}


def _bearer_token(authorization: str | None) -> str | None:
    """Extract a bearer token from an Authorization header value."""

    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def handle_voice_listing(
    authorization: str | None,
    *,
    backend: PlatformBackend,
    google_client: GoogleTtsClient,
) -> tuple[int, dict[str, Any]]:
    """Resolve the caller's key and return `(status_code, json_body)`."""

    token = _bearer_token(authorization)
    try:
        identity = require_identity(resolve_session(token, backend), "list voices")
    except UnauthenticatedError:
        _log.warning("unauthenticated")
        return 401, _error_body("User not authenticated", UnauthenticatedError.kind)
    except DashboardError as exc:
        _log.error("identity_lookup_failed", error_kind=exc.kind)
        return 500, _error_body(exc.detail, TransportError.kind)

    api_key = RemoteCredentialStore(backend=backend, identity=identity).get(PROVIDER_GOOGLE)
    if api_key is None:
        _log.warning("key_not_found", user_id=identity.user_id)
        return 400, _error_body(
            "Google API key not found. Please set it in the Settings page.",
            MissingCredentialError.kind,
        )

    try:
        payload = google_client.list_voices_payload(api_key)
    except InvalidCredentialError:
        return 400, _error_body(INVALID_KEY_MESSAGE, InvalidCredentialError.kind)
    except DashboardError as exc:
        _log.error("provider_failed", error_kind=exc.kind)
        return 500, _error_body(exc.detail, TransportError.kind)

    _log.info("served", user_id=identity.user_id)
    return 200, payload


def _default_backend() -> PlatformBackend:
    """Build the platform client from environment configuration."""

    config = ConfigLoader.from_env(os.environ)
    backend = config.create_backend()
    if backend is None:
        raise TransportError("Platform backend is not configured for the voice function.")
    return backend


def _default_google_client() -> GoogleTtsClient:
    """Build the Google voices client from environment configuration."""

    return ConfigLoader.from_env(os.environ).create_google_client()


def create_app(
    backend_factory: Callable[[], PlatformBackend] = _default_backend,
    google_client_factory: Callable[[], GoogleTtsClient] = _default_google_client,
) -> FastAPI:
    """Create the ASGI application hosting the voice-listing function."""

    app = FastAPI(title="voicedash functions")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=CORS_ALLOWED_HEADERS,
    )

    @app.api_route(FUNCTION_PATH, methods=["GET", "POST"])
    def google_tts_voices(authorization: str | None = Header(default=None)) -> JSONResponse:
        """List Google voices for the bearer's stored key."""

        try:
            backend = backend_factory()
            google_client = google_client_factory()
        except (DashboardError, ValueError) as exc:
            _log.error("misconfigured", error_type=type(exc).__name__)
            return JSONResponse(_error_body(str(exc), TransportError.kind), status_code=500)

        status_code, body = handle_voice_listing(
            authorization,
            backend=backend,
            google_client=google_client,
        )
        return JSONResponse(body, status_code=status_code)

    return app
