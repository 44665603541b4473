"""Unit tests for the platform REST client."""

from __future__ import annotations

from typing import Any

import pytest
import requests

from tests.fakes import FakeResponse
from voicedash.backend import client as backend_client
from voicedash.backend.client import BackendError, PlatformBackend, to_dashboard_error
from voicedash.errors import ConflictError, TransportError, UnauthenticatedError


class RecordingRequest:
    """Callable replacing `requests.request` that records calls."""

    def __init__(self, response: FakeResponse | Exception) -> None:
        """Return or raise `response` for every call."""

        self.response = response
        self.calls: list[dict[str, Any]] = []

    def __call__(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        """Record the request and return the canned response."""

        self.calls.append({"method": method, "url": url, **kwargs})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _backend() -> PlatformBackend:
    """Build a client pointed at a fake project URL."""

    return PlatformBackend(url="https://demo.example.co/", anon_key="anon-key", timeout_seconds=5)


def test_select_rows_sends_equality_filters_and_user_token(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Row selects use `eq.` filters, the anon key, and the user bearer token."""

    fake_request = RecordingRequest(FakeResponse(200, [{"api_key": "AIzaKey"}]))
    monkeypatch.setattr(backend_client.requests, "request", fake_request)

    rows = _backend().select_rows(
        "provider_credentials",
        access_token="user-token",
        filters={"user_id": "u1", "provider": "google"},
        columns="api_key",
    )

    assert rows == [{"api_key": "AIzaKey"}]
    [call] = fake_request.calls
    assert call["method"] == "GET"
    assert call["url"] == "https://demo.example.co/rest/v1/provider_credentials"
    assert call["params"] == {
        "select": "api_key",
        "user_id": "eq.u1",
        "provider": "eq.google",
    }
    assert call["headers"]["apikey"] == "anon-key"
    assert call["headers"]["Authorization"] == "Bearer user-token"
    assert call["timeout"] == 5


def test_upsert_row_requests_merge_on_conflict(monkeypatch: pytest.MonkeyPatch) -> None:
    """Upserts name the conflict columns and ask for merged representation."""

    stored = {"user_id": "u1", "provider": "google", "api_key": "k"}
    fake_request = RecordingRequest(FakeResponse(201, [stored]))
    monkeypatch.setattr(backend_client.requests, "request", fake_request)

    row = _backend().upsert_row(
        "provider_credentials",
        stored,
        access_token="user-token",
        on_conflict="user_id,provider",
    )

    assert row == stored
    [call] = fake_request.calls
    assert call["params"] == {"on_conflict": "user_id,provider"}
    assert call["headers"]["Prefer"] == "resolution=merge-duplicates,return=representation"


@pytest.mark.parametrize(
    ("status_code", "body", "failure_kind"),
    [
        (401, {"message": "JWT expired"}, "unauthenticated"),
        (409, {"message": "duplicate key value"}, "conflict"),
        (400, {"code": "23505", "message": "duplicate key value"}, "conflict"),
        (404, {"message": "missing"}, "not_found"),
        (504, {"message": "gateway timeout"}, "timeout"),
        (500, {"error": "boom"}, "http_error"),
    ],
)
def test_http_failures_are_classified(
    monkeypatch: pytest.MonkeyPatch,
    status_code: int,
    body: dict[str, str],
    failure_kind: str,
) -> None:
    """HTTP errors map to deterministic failure kinds."""

    monkeypatch.setattr(
        backend_client.requests,
        "request",
        RecordingRequest(FakeResponse(status_code, body)),
    )

    with pytest.raises(BackendError) as exc_info:
        _backend().get_user("user-token")

    assert exc_info.value.failure_kind == failure_kind
    assert exc_info.value.status_code == status_code
    assert f"HTTP {status_code}" in str(exc_info.value)


def test_transport_failures_are_classified(monkeypatch: pytest.MonkeyPatch) -> None:
    """Timeouts and connection failures map to transport kinds."""

    monkeypatch.setattr(
        backend_client.requests,
        "request",
        RecordingRequest(requests.Timeout("slow")),
    )
    with pytest.raises(BackendError) as timeout_info:
        _backend().get_user("user-token")
    assert timeout_info.value.failure_kind == "timeout"

    monkeypatch.setattr(
        backend_client.requests,
        "request",
        RecordingRequest(requests.ConnectionError("refused")),
    )
    with pytest.raises(BackendError) as transport_info:
        _backend().get_user("user-token")
    assert transport_info.value.failure_kind == "transport"


def test_get_user_requires_id(monkeypatch: pytest.MonkeyPatch) -> None:
    """User payloads without an id are malformed."""

    monkeypatch.setattr(
        backend_client.requests,
        "request",
        RecordingRequest(FakeResponse(200, {"email": "x@example.com"})),
    )

    with pytest.raises(BackendError) as exc_info:
        _backend().get_user("user-token")

    assert exc_info.value.failure_kind == "malformed"


def test_invoke_function_returns_error_status_without_raising(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Function responses carry status and decoded body, even on errors."""

    calls: list[dict[str, Any]] = []

    def _fake_post(url: str, **kwargs: Any) -> FakeResponse:
        """Record the function call and return an error response."""

        calls.append({"url": url, **kwargs})
        return FakeResponse(400, {"error": "Google API key not found."})

    monkeypatch.setattr(backend_client.requests, "post", _fake_post)

    response = _backend().invoke_function("google-tts-voices", access_token="user-token")

    assert response.status_code == 400
    assert response.payload == {"error": "Google API key not found."}
    assert calls[0]["url"] == "https://demo.example.co/functions/v1/google-tts-voices"
    assert calls[0]["headers"]["Authorization"] == "Bearer user-token"


def test_to_dashboard_error_maps_failure_kinds() -> None:
    """Platform failures map onto the dashboard taxonomy."""

    assert isinstance(
        to_dashboard_error(BackendError("x", failure_kind="unauthenticated")),
        UnauthenticatedError,
    )
    assert isinstance(to_dashboard_error(BackendError("x", failure_kind="conflict")), ConflictError)
    transport = to_dashboard_error(BackendError("x", failure_kind="timeout", status_code=504))
    assert isinstance(transport, TransportError)
    assert transport.status_code == 504


def test_delete_object_targets_bucket_path_with_user_token(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Object deletes call the storage object URL with the user bearer token."""

    fake_request = RecordingRequest(FakeResponse(200, {"message": "Successfully deleted"}))
    monkeypatch.setattr(backend_client.requests, "request", fake_request)

    _backend().delete_object("voice-samples", "u1/abc.wav", access_token="user-token")

    [call] = fake_request.calls
    assert call["method"] == "DELETE"
    assert call["url"] == "https://demo.example.co/storage/v1/object/voice-samples/u1/abc.wav"
    assert call["headers"]["Authorization"] == "Bearer user-token"


def test_delete_object_failures_raise_backend_error(monkeypatch: pytest.MonkeyPatch) -> None:
    """Failed deletes surface as normalized platform errors."""

    monkeypatch.setattr(
        backend_client.requests,
        "request",
        RecordingRequest(FakeResponse(404, {"message": "Object not found"})),
    )

    with pytest.raises(BackendError) as exc_info:
        _backend().delete_object("voice-samples", "u1/missing.wav", access_token="user-token")

    assert exc_info.value.failure_kind == "not_found"
