"""Local IO adapters."""

from .local_store import (
    InMemoryKeyValueStore,
    KeyringKeyValueStore,
    KeyValueStore,
    create_local_store,
)

__all__ = [
    "InMemoryKeyValueStore",
    "KeyringKeyValueStore",
    "KeyValueStore",
    "create_local_store",
]
