"""Redis client construction and entry store selection.

Clients and stores are created explicitly and handed to the components
that need them; there is no process-wide handle. The caller closes the
client it created.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from companion_cache.core.config import StoreBackend
from companion_cache.observability.logging import get_logger
from companion_cache.store.memory import InMemoryEntryStore
from companion_cache.store.redis import RedisEntryStore


if TYPE_CHECKING:
    from redis.asyncio import Redis

    from companion_cache.core.config import Settings
    from companion_cache.store.protocol import EntryStore

logger = get_logger(__name__)


def create_redis_client(settings: Settings) -> Redis[Any]:
    """Create a Redis client for the entry store database.

    Responses are kept as bytes; documents are decoded with orjson.
    """
    logger.info(
        "Creating Redis store client",
        host=settings.redis.host,
        port=settings.redis.port,
        db=settings.redis.store_db,
    )
    pool: ConnectionPool[Any] = ConnectionPool.from_url(
        settings.redis_store_url,
        max_connections=settings.redis.max_connections,
        decode_responses=False,
    )
    return redis.Redis(connection_pool=pool)


def create_store(
    settings: Settings,
    client: Redis[Any] | None = None,
) -> EntryStore:
    """Build the entry store selected by ``settings.store.backend``.

    Args:
        settings: Library settings.
        client: Redis client for the redis backend. Created from settings
            when omitted.
    """
    if settings.store.backend == StoreBackend.REDIS:
        return RedisEntryStore(
            client or create_redis_client(settings),
            key_prefix=settings.store.key_prefix,
        )
    return InMemoryEntryStore()


async def check_redis_health(client: Redis[Any] | None) -> str:
    """Return "healthy", "unhealthy" or "not_initialized" for ``client``."""
    if client is None:
        return "not_initialized"
    try:
        await client.ping()
    except redis.ConnectionError:
        logger.warning("Redis store ping failed")
        return "unhealthy"
    return "healthy"
