"""In-memory entry store.

Documents are kept as orjson-encoded bytes so that readers always get
independent copies and anything that would not survive a real store is
rejected on write.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import TYPE_CHECKING

import orjson

from companion_cache.observability.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Iterable

    from companion_cache.schemas.enums import EntityKind
    from companion_cache.store.protocol import Document, Predicate

logger = get_logger(__name__)


class InMemoryEntryStore:
    """Process-local implementation of ``EntryStore``."""

    def __init__(self) -> None:
        self._collections: defaultdict[str, dict[str, bytes]] = defaultdict(dict)
        self._sequences: defaultdict[str, int] = defaultdict(int)
        self._lock = asyncio.Lock()

    async def get_all(self, kind: EntityKind) -> list[Document]:
        return [orjson.loads(raw) for raw in self._collections[kind].values()]

    async def get_by_id(self, kind: EntityKind, key: str) -> Document | None:
        raw = self._collections[kind].get(key)
        return None if raw is None else orjson.loads(raw)

    async def query(self, kind: EntityKind, predicate: Predicate) -> list[Document]:
        return [doc for doc in await self.get_all(kind) if predicate(doc)]

    async def insert_or_replace(
        self, kind: EntityKind, key: str, document: Document
    ) -> None:
        self._collections[kind][key] = orjson.dumps(document)

    async def append(self, kind: EntityKind, document: Document) -> int:
        async with self._lock:
            self._sequences[kind] += 1
            new_id = self._sequences[kind]
            self._collections[kind][str(new_id)] = orjson.dumps(
                {**document, "id": new_id}
            )
        return new_id

    async def update(self, kind: EntityKind, key: str, fields: Document) -> bool:
        async with self._lock:
            raw = self._collections[kind].get(key)
            if raw is None:
                return False
            merged = {**orjson.loads(raw), **fields}
            self._collections[kind][key] = orjson.dumps(merged)
        return True

    async def increment(
        self,
        kind: EntityKind,
        key: str,
        field: str,
        amount: int = 1,
        set_fields: Document | None = None,
    ) -> bool:
        async with self._lock:
            raw = self._collections[kind].get(key)
            if raw is None:
                return False
            document = orjson.loads(raw)
            document[field] = document.get(field, 0) + amount
            document.update(set_fields or {})
            self._collections[kind][key] = orjson.dumps(document)
        return True

    async def delete_if(
        self, kind: EntityKind, key: str, predicate: Predicate
    ) -> bool:
        async with self._lock:
            raw = self._collections[kind].get(key)
            if raw is None or not predicate(orjson.loads(raw)):
                return False
            del self._collections[kind][key]
        return True

    async def delete_by_ids(self, kind: EntityKind, keys: Iterable[str]) -> int:
        collection = self._collections[kind]
        removed = 0
        async with self._lock:
            for key in keys:
                if collection.pop(key, None) is not None:
                    removed += 1
        return removed

    async def clear(self, kind: EntityKind) -> int:
        async with self._lock:
            removed = len(self._collections[kind])
            self._collections[kind].clear()
        logger.debug("Cleared collection", kind=str(kind), removed=removed)
        return removed
