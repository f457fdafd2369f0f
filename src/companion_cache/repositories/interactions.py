"""Interaction log repository (append-only)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from companion_cache.repositories.base import DocumentRepository
from companion_cache.schemas.enums import EntityKind
from companion_cache.schemas.interaction import InteractionEvent


if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from companion_cache.schemas.enums import InteractionType


def _newest_first(events: list[InteractionEvent]) -> list[InteractionEvent]:
    return sorted(events, key=lambda e: (e.timestamp, e.id or 0), reverse=True)


class InteractionRepository(DocumentRepository[InteractionEvent]):
    """Repository for interaction events, keyed by store-assigned id."""

    kind = EntityKind.INTERACTIONS
    model = InteractionEvent

    async def append(self, event: InteractionEvent) -> InteractionEvent:
        document = self._encode(event)
        document.pop("id", None)
        new_id = await self._store.append(self.kind, document)
        self._changed(str(new_id))
        return event.model_copy(update={"id": new_id})

    async def append_many(
        self,
        events: Iterable[InteractionEvent],
    ) -> list[InteractionEvent]:
        stored = []
        for event in events:
            document = self._encode(event)
            document.pop("id", None)
            new_id = await self._store.append(self.kind, document)
            stored.append(event.model_copy(update={"id": new_id}))
        self._changed(*(str(event.id) for event in stored))
        return stored

    async def get_recent(self, limit: int = 1000) -> list[InteractionEvent]:
        return _newest_first(await self._load_all())[: max(0, limit)]

    async def get_by_type(
        self,
        interaction_type: InteractionType,
        limit: int = 100,
    ) -> list[InteractionEvent]:
        documents = await self._store.query(
            self.kind, lambda doc: doc.get("type") == interaction_type.value
        )
        return _newest_first(self._decode_all(documents))[: max(0, limit)]

    async def get_by_product(self, product_id: str) -> list[InteractionEvent]:
        documents = await self._store.query(
            self.kind, lambda doc: doc.get("productId") == product_id
        )
        return _newest_first(self._decode_all(documents))

    async def get_all(self) -> list[InteractionEvent]:
        return _newest_first(await self._load_all())

    async def delete_older_than(self, cutoff: datetime) -> int:
        stale = [
            str(event.id)
            for event in await self._load_all()
            if event.timestamp < cutoff and event.id is not None
        ]
        if not stale:
            return 0
        removed = await self._store.delete_by_ids(self.kind, stale)
        self._changed(*stale)
        return removed
