"""HTTP client for the hosted auth/storage platform.

Responsibilities:
- Call the platform's public REST surfaces (auth, table rows, storage objects,
  and edge functions) with the project anon key and a user access token.
- Normalize HTTP and transport failures into `BackendError` with a stable
  `failure_kind` so callers can map them to dashboard errors.

Key types:
- `PlatformBackend`: requests-based client.
- `BackendError`: normalized platform failure.
- `FunctionResponse`: raw status/payload pair returned by edge functions.
"""

from __future__ import annotations

import json
import re
import socket
from dataclasses import dataclass
from typing import Any, Mapping

import requests

from ..errors import ConflictError, DashboardError, TransportError, UnauthenticatedError


class BackendError(RuntimeError):
    """Raised when a platform request fails or returns a malformed payload."""

    def __init__(
        self,
        message: str,
        *,
        failure_kind: str = "unknown",
        status_code: int | None = None,
    ) -> None:
        """Initialize platform error metadata for call-site mapping."""

        super().__init__(message)
        self.failure_kind = failure_kind
        self.status_code = status_code


def to_dashboard_error(exc: BackendError) -> DashboardError:
    """Map a platform failure to the dashboard error taxonomy."""

    if exc.failure_kind == "unauthenticated":
        return UnauthenticatedError(
            "The platform rejected the session.",
            hint="Run `voicedash login` and retry.",
        )
    if exc.failure_kind == "conflict":
        return ConflictError(str(exc))
    return TransportError(str(exc), status_code=exc.status_code)


@dataclass(frozen=True, slots=True)
class FunctionResponse:
    """Status code and decoded JSON body returned by an edge function."""

    status_code: int
    payload: Any


class PlatformBackend:
    """Minimal requests-based client for the platform REST endpoints."""

    _MAX_MESSAGE_CHARS = 180

    def __init__(
        self,
        *,
        url: str,
        anon_key: str,
        timeout_seconds: float = 30.0,
    ) -> None:
        """Initialize platform endpoint settings."""

        self.url = url.rstrip("/")
        self.anon_key = anon_key.strip()
        self.timeout_seconds = timeout_seconds

    def get_user(self, access_token: str) -> dict[str, Any]:
        """Return the user record that owns an access token."""

        response = self._request("GET", "/auth/v1/user", access_token=access_token)
        payload = self._decode_json(response)
        if not isinstance(payload, dict) or not isinstance(payload.get("id"), str):
            raise BackendError(
                "Platform user payload is missing an `id`.",
                failure_kind="malformed",
                status_code=response.status_code,
            )
        return payload

    def sign_in_with_password(self, email: str, password: str) -> str:
        """Exchange email/password credentials for an access token."""

        response = self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json_payload={"email": email, "password": password},
        )
        payload = self._decode_json(response)
        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token.strip():
            raise BackendError(
                "Platform sign-in response has no access token.",
                failure_kind="malformed",
                status_code=response.status_code,
            )
        return token.strip()

    def sign_out(self, access_token: str) -> None:
        """Revoke an access token on the platform."""

        self._request("POST", "/auth/v1/logout", access_token=access_token)

    def select_rows(
        self,
        table: str,
        *,
        access_token: str,
        filters: Mapping[str, str],
        columns: str = "*",
        order: str | None = None,
    ) -> list[dict[str, Any]]:
        """Select rows matching equality filters."""

        params = {"select": columns}
        params.update({column: f"eq.{value}" for column, value in filters.items()})
        if order is not None:
            params["order"] = order
        response = self._request(
            "GET",
            f"/rest/v1/{table}",
            access_token=access_token,
            params=params,
        )
        return self._decode_rows(response)

    def insert_row(
        self,
        table: str,
        row: Mapping[str, Any],
        *,
        access_token: str,
    ) -> dict[str, Any]:
        """Insert one row and return its stored representation."""

        response = self._request(
            "POST",
            f"/rest/v1/{table}",
            access_token=access_token,
            json_payload=dict(row),
            headers={"Prefer": "return=representation"},
        )
        return self._first_row(response)

    def upsert_row(
        self,
        table: str,
        row: Mapping[str, Any],
        *,
        access_token: str,
        on_conflict: str,
    ) -> dict[str, Any]:
        """Insert or overwrite one row keyed by the `on_conflict` columns."""

        response = self._request(
            "POST",
            f"/rest/v1/{table}",
            access_token=access_token,
            params={"on_conflict": on_conflict},
            json_payload=dict(row),
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        return self._first_row(response)

    def update_rows(
        self,
        table: str,
        values: Mapping[str, Any],
        *,
        access_token: str,
        filters: Mapping[str, str],
    ) -> list[dict[str, Any]]:
        """Update rows matching equality filters and return them."""

        response = self._request(
            "PATCH",
            f"/rest/v1/{table}",
            access_token=access_token,
            params={column: f"eq.{value}" for column, value in filters.items()},
            json_payload=dict(values),
            headers={"Prefer": "return=representation"},
        )
        return self._decode_rows(response)

    def upload_object(
        self,
        bucket: str,
        object_path: str,
        data: bytes,
        *,
        content_type: str,
        access_token: str,
    ) -> str:
        """Upload binary data to a storage bucket and return the object key."""

        self._request(
            "POST",
            f"/storage/v1/object/{bucket}/{object_path}",
            access_token=access_token,
            data=data,
            headers={"Content-Type": content_type},
        )
        return f"{bucket}/{object_path}"

    def delete_object(self, bucket: str, object_path: str, *, access_token: str) -> None:
        """Remove one object from a storage bucket."""

        self._request(
            "DELETE",
            f"/storage/v1/object/{bucket}/{object_path}",
            access_token=access_token,
        )

    def invoke_function(self, name: str, *, access_token: str) -> FunctionResponse:
        """Invoke an edge function without a body and return its raw response.

        HTTP error statuses are returned, not raised, because edge functions
        report domain errors through `{"error": ...}` bodies.
        """

        endpoint = f"{self.url}/functions/v1/{name}"
        try:
            response = requests.post(
                endpoint,
                headers=self._headers(access_token),
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise self._transport_error(exc) from exc

        try:
            payload = json.loads(bytes(response.content).decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            payload = None
        return FunctionResponse(status_code=response.status_code, payload=payload)

    def _headers(
        self,
        access_token: str | None,
        extra: Mapping[str, str] | None = None,
    ) -> dict[str, str]:
        """Build platform headers for anon or user-scoped requests."""

        bearer = access_token if access_token else self.anon_key
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {bearer}",
        }
        if extra:
            headers.update(extra)
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        access_token: str | None = None,
        params: Mapping[str, str] | None = None,
        json_payload: Any = None,
        data: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> requests.Response:
        """Execute one platform request and map failures consistently."""

        try:
            response = requests.request(
                method,
                f"{self.url}{path}",
                headers=self._headers(access_token, headers),
                params=dict(params) if params else None,
                json=json_payload,
                data=data,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise self._http_error(exc) from exc
        except requests.RequestException as exc:
            raise self._transport_error(exc) from exc
        return response

    @staticmethod
    def _decode_json(response: requests.Response) -> Any:
        """Decode a JSON response body or raise a malformed-payload error."""

        try:
            return json.loads(bytes(response.content).decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise BackendError(
                "Platform returned invalid JSON payload.",
                failure_kind="malformed",
                status_code=response.status_code,
            ) from exc

    @classmethod
    def _decode_rows(cls, response: requests.Response) -> list[dict[str, Any]]:
        """Decode a JSON array of row objects."""

        payload = cls._decode_json(response)
        if not isinstance(payload, list) or not all(isinstance(row, dict) for row in payload):
            raise BackendError(
                "Platform returned a non-list row payload.",
                failure_kind="malformed",
                status_code=response.status_code,
            )
        return payload

    @classmethod
    def _first_row(cls, response: requests.Response) -> dict[str, Any]:
        """Return the first row of a representation response."""

        rows = cls._decode_rows(response)
        if not rows:
            raise BackendError(
                "Platform returned no row representation.",
                failure_kind="malformed",
                status_code=response.status_code,
            )
        return rows[0]

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize and cap user-facing platform message length."""

        compact = " ".join(text.split())
        compact = re.sub(r"(?i)bearer\s+[A-Za-z0-9._-]{12,}", "Bearer [redacted-token]", compact)
        if len(compact) <= cls._MAX_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_MESSAGE_CHARS - 1]}..."

    @classmethod
    def _extract_message(cls, body: str) -> tuple[str, str | None]:
        """Extract a concise message and optional error code from an error body."""

        if not body:
            return "", None
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return cls._short_message(body), None
        if not isinstance(payload, dict):
            return cls._short_message(body), None

        code = payload.get("code")
        code_text = str(code) if code is not None else None
        for key in ("message", "msg", "error_description", "error"):
            value = payload.get(key)
            if isinstance(value, dict):
                value = value.get("message")
            if isinstance(value, str) and value.strip():
                return cls._short_message(value), code_text
        return cls._short_message(body), code_text

    @staticmethod
    def _classify_http_failure(status_code: int, code: str | None) -> str:
        """Classify platform HTTP errors into deterministic kinds."""

        if status_code in {401, 403}:
            return "unauthenticated"
        if status_code == 409 or code == "23505":
            return "conflict"
        if status_code in {404, 406}:
            return "not_found"
        if status_code in {408, 504}:
            return "timeout"
        return "http_error"

    @classmethod
    def _http_error(cls, exc: requests.HTTPError) -> BackendError:
        """Convert HTTP errors into normalized platform errors."""

        response = exc.response
        status_code = response.status_code if response is not None else 0
        body = ""
        if response is not None:
            body = bytes(response.content).decode("utf-8", errors="replace").strip()
        message, code = cls._extract_message(body)
        failure_kind = cls._classify_http_failure(status_code, code)
        if message:
            detail = f"Platform request failed (HTTP {status_code}): {message}"
        else:
            detail = f"Platform request failed (HTTP {status_code})."
        return BackendError(detail, failure_kind=failure_kind, status_code=status_code)

    @classmethod
    def _transport_error(cls, exc: requests.RequestException) -> BackendError:
        """Convert network-layer failures into normalized platform errors."""

        if isinstance(exc, requests.Timeout | socket.timeout):
            return BackendError("Platform request timed out.", failure_kind="timeout")
        return BackendError(
            f"Platform request transport error: {cls._short_message(str(exc))}",
            failure_kind="transport",
        )
