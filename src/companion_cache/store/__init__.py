"""Entry store protocol, adapters and change notification."""

from companion_cache.store.changes import ChangeListener, ChangeNotifier
from companion_cache.store.connection import (
    check_redis_health,
    create_redis_client,
    create_store,
)
from companion_cache.store.memory import InMemoryEntryStore
from companion_cache.store.protocol import Document, EntryStore, Predicate
from companion_cache.store.redis import RedisEntryStore


__all__ = [
    "ChangeListener",
    "ChangeNotifier",
    "Document",
    "EntryStore",
    "InMemoryEntryStore",
    "Predicate",
    "RedisEntryStore",
    "check_redis_health",
    "create_redis_client",
    "create_store",
]
