"""Integration-test fixtures wiring CLI commands to in-memory collaborators."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from tests.fakes import FakeBackend, FakeGoogleClient
from voicedash import cli
from voicedash.config import ConfigLoader, DashboardConfig
from voicedash.io.local_store import InMemoryKeyValueStore


@dataclass
class CliHarness:
    """Collaborators shared by one CLI test."""

    backend: FakeBackend
    google_client: FakeGoogleClient
    local_store: InMemoryKeyValueStore


@pytest.fixture
def cli_harness(monkeypatch: pytest.MonkeyPatch) -> CliHarness:
    """Route CLI runtime construction to deterministic in-memory doubles."""

    for env_keys in ConfigLoader._ENV_KEYS.values():
        for env_key in env_keys:
            monkeypatch.delenv(env_key, raising=False)

    harness = CliHarness(
        backend=FakeBackend(),
        google_client=FakeGoogleClient(),
        local_store=InMemoryKeyValueStore(),
    )
    monkeypatch.setattr(cli, "create_local_store", lambda service_name: harness.local_store)
    monkeypatch.setattr(DashboardConfig, "create_backend", lambda self: harness.backend)
    monkeypatch.setattr(
        DashboardConfig,
        "create_google_client",
        lambda self: harness.google_client,
    )
    return harness
