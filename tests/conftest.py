"""Shared pytest fixtures for the full voicedash test suite."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from loguru import logger

from tests.fakes import USER_EMAIL, USER_ID, USER_TOKEN, FakeBackend
from voicedash.io.local_store import InMemoryKeyValueStore
from voicedash.session import AuthenticatedSession, Identity


@pytest.fixture
def backend() -> FakeBackend:
    """Provide an in-memory platform with one seeded user."""

    return FakeBackend()


@pytest.fixture
def local_store() -> InMemoryKeyValueStore:
    """Provide empty device-local storage."""

    return InMemoryKeyValueStore()


@pytest.fixture
def identity() -> Identity:
    """Provide the identity of the seeded user."""

    return Identity(user_id=USER_ID, email=USER_EMAIL, access_token=USER_TOKEN)


@pytest.fixture
def authenticated_session(identity: Identity) -> AuthenticatedSession:
    """Provide a session bound to the seeded user."""

    return AuthenticatedSession(identity=identity)


@pytest.fixture
def log_lines() -> Iterator[list[str]]:
    """Capture loguru event lines emitted during a test."""

    lines: list[str] = []
    handler_id = logger.add(
        lambda message: lines.append(str(message).rstrip("\n")),
        format="{message}",
    )
    try:
        yield lines
    finally:
        logger.remove(handler_id)
