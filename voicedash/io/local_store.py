"""Per-device key-value storage.

Responsibilities:
- Define the injectable key-value interface used for anonymous credential and
  session-token persistence.
- Bind that interface to the OS credential store through `keyring`.
- Provide an in-memory implementation for tests and ephemeral runs.

Key types:
- `KeyValueStore`: protocol for local string storage.
- `KeyringKeyValueStore`: keyring-backed implementation.
- `InMemoryKeyValueStore`: dictionary-backed implementation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


_DEFAULT_SERVICE_NAME = "voicedash"


class KeyValueStore(Protocol):
    """Protocol for local per-device string storage."""

    def get(self, key: str) -> str | None:
        """Return the stored value for `key`, or `None` when absent."""

    def set(self, key: str, value: str) -> None:
        """Persist `value` under `key`, overwriting any previous value."""

    def delete(self, key: str) -> bool:
        """Remove `key` and return whether a value existed."""


@dataclass(slots=True)
class InMemoryKeyValueStore:
    """Dictionary-backed key-value store."""

    values: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        """Return the stored value for `key`, if any."""

        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        """Store `value` under `key`."""

        self.values[key] = value

    def delete(self, key: str) -> bool:
        """Remove `key` and report whether it existed."""

        return self.values.pop(key, None) is not None


@dataclass(slots=True)
class KeyringKeyValueStore:
    """Key-value store backed by the `keyring` package."""

    service_name: str = _DEFAULT_SERVICE_NAME

    def _load_keyring_module(self):
        """Import and return the `keyring` module when a backend is usable."""

        try:
            import keyring  # type: ignore
        except ImportError:
            return None
        return keyring

    def is_available(self) -> bool:
        """Return `True` when `keyring` can be imported in this environment."""

        return self._load_keyring_module() is not None

    def get(self, key: str) -> str | None:
        """Return a stored value from keyring, or `None` when missing."""

        keyring_module = self._load_keyring_module()
        if keyring_module is None:
            return None
        return keyring_module.get_password(self.service_name, key)

    def set(self, key: str, value: str) -> None:
        """Persist a value in keyring or raise when keyring is unavailable."""

        keyring_module = self._load_keyring_module()
        if keyring_module is None:
            raise RuntimeError(
                "Local credential storage is unavailable because `keyring` is not "
                "installed."
            )
        keyring_module.set_password(self.service_name, key, value)

    def delete(self, key: str) -> bool:
        """Remove a value from keyring and report whether one was present."""

        keyring_module = self._load_keyring_module()
        if keyring_module is None:
            return False
        if keyring_module.get_password(self.service_name, key) is None:
            return False
        keyring_module.delete_password(self.service_name, key)
        return True


def create_local_store(service_name: str = _DEFAULT_SERVICE_NAME) -> KeyValueStore:
    """Create the default per-device key-value store."""

    return KeyringKeyValueStore(service_name=service_name)
