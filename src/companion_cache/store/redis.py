"""Redis-backed entry store.

Layout:
- One hash per entity kind: ``{prefix}:{kind}`` mapping key -> orjson document
- One counter per kind for auto-increment ids: ``{prefix}:{kind}:seq``

Single-document read-modify-write and conditional delete use WATCH/MULTI on
the kind's hash.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import orjson
from redis.exceptions import WatchError

from companion_cache.observability.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from redis.asyncio import Redis

    from companion_cache.schemas.enums import EntityKind
    from companion_cache.store.protocol import Document, Predicate

logger = get_logger(__name__)

# Optimistic-lock attempts before the WatchError is surfaced to the caller
MAX_WATCH_ATTEMPTS = 10


class RedisEntryStore:
    """``EntryStore`` implementation over a ``redis.asyncio`` client.

    The client is owned by the caller; this class never closes it.
    """

    def __init__(self, client: Redis[Any], key_prefix: str = "companion") -> None:
        self._client = client
        self._prefix = key_prefix

    def _collection_key(self, kind: EntityKind) -> str:
        return f"{self._prefix}:{kind}"

    def _sequence_key(self, kind: EntityKind) -> str:
        return f"{self._prefix}:{kind}:seq"

    async def get_all(self, kind: EntityKind) -> list[Document]:
        values = await self._client.hvals(self._collection_key(kind))
        return [orjson.loads(raw) for raw in values]

    async def get_by_id(self, kind: EntityKind, key: str) -> Document | None:
        raw = await self._client.hget(self._collection_key(kind), key)
        return None if raw is None else orjson.loads(raw)

    async def query(self, kind: EntityKind, predicate: Predicate) -> list[Document]:
        return [doc for doc in await self.get_all(kind) if predicate(doc)]

    async def insert_or_replace(
        self, kind: EntityKind, key: str, document: Document
    ) -> None:
        await self._client.hset(
            self._collection_key(kind), key, orjson.dumps(document)
        )

    async def append(self, kind: EntityKind, document: Document) -> int:
        new_id = int(await self._client.incr(self._sequence_key(kind)))
        await self._client.hset(
            self._collection_key(kind),
            str(new_id),
            orjson.dumps({**document, "id": new_id}),
        )
        return new_id

    async def update(self, kind: EntityKind, key: str, fields: Document) -> bool:
        return await self._read_modify_write(
            kind, key, lambda document: {**document, **fields}
        )

    async def increment(
        self,
        kind: EntityKind,
        key: str,
        field: str,
        amount: int = 1,
        set_fields: Document | None = None,
    ) -> bool:
        def apply(document: Document) -> Document:
            document[field] = document.get(field, 0) + amount
            document.update(set_fields or {})
            return document

        return await self._read_modify_write(kind, key, apply)

    async def delete_if(
        self, kind: EntityKind, key: str, predicate: Predicate
    ) -> bool:
        """Delete one document under WATCH when ``predicate`` holds.

        Raises:
            WatchError: The hash kept changing for MAX_WATCH_ATTEMPTS tries.
        """
        name = self._collection_key(kind)
        async with self._client.pipeline(transaction=True) as pipe:
            for attempt in range(1, MAX_WATCH_ATTEMPTS + 1):
                try:
                    await pipe.watch(name)
                    raw = await pipe.hget(name, key)
                    if raw is None or not predicate(orjson.loads(raw)):
                        await pipe.unwatch()
                        return False
                    pipe.multi()
                    pipe.hdel(name, key)
                    await pipe.execute()
                    return True
                except WatchError:
                    if attempt == MAX_WATCH_ATTEMPTS:
                        raise
                    logger.debug(
                        "Concurrent write detected, retrying delete",
                        kind=str(kind),
                        key=key,
                        attempt=attempt,
                    )
        return False

    async def delete_by_ids(self, kind: EntityKind, keys: Iterable[str]) -> int:
        key_list = list(keys)
        if not key_list:
            return 0
        return int(await self._client.hdel(self._collection_key(kind), *key_list))

    async def clear(self, kind: EntityKind) -> int:
        name = self._collection_key(kind)
        removed = int(await self._client.hlen(name))
        await self._client.delete(name)
        logger.debug("Cleared collection", kind=str(kind), removed=removed)
        return removed

    async def _read_modify_write(
        self,
        kind: EntityKind,
        key: str,
        mutate: Callable[[Document], Document],
    ) -> bool:
        """Apply ``mutate`` to one document under WATCH.

        Raises:
            WatchError: The hash kept changing for MAX_WATCH_ATTEMPTS tries.
        """
        name = self._collection_key(kind)
        async with self._client.pipeline(transaction=True) as pipe:
            for attempt in range(1, MAX_WATCH_ATTEMPTS + 1):
                try:
                    await pipe.watch(name)
                    raw = await pipe.hget(name, key)
                    if raw is None:
                        await pipe.unwatch()
                        return False
                    document = mutate(orjson.loads(raw))
                    pipe.multi()
                    pipe.hset(name, key, orjson.dumps(document))
                    await pipe.execute()
                    return True
                except WatchError:
                    if attempt == MAX_WATCH_ATTEMPTS:
                        raise
                    logger.debug(
                        "Concurrent write detected, retrying",
                        kind=str(kind),
                        key=key,
                        attempt=attempt,
                    )
        return False
