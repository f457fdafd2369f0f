"""Price history repository.

Observations are append-only; the only deletion is retention pruning.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from companion_cache.observability.logging import get_logger
from companion_cache.repositories.base import DocumentRepository
from companion_cache.schemas.enums import EntityKind
from companion_cache.schemas.price import PriceObservation


if TYPE_CHECKING:
    from datetime import datetime


logger = get_logger(__name__)


class PriceHistoryRepository(DocumentRepository[PriceObservation]):
    """Repository for price observations, keyed by store-assigned id."""

    kind = EntityKind.PRICE_HISTORY
    model = PriceObservation

    async def _for_product(self, product_id: str) -> list[PriceObservation]:
        documents = await self._store.query(
            self.kind, lambda doc: doc.get("productId") == product_id
        )
        # Ties on timestamp keep insertion order via the auto-increment id
        return sorted(
            self._decode_all(documents), key=lambda o: (o.timestamp, o.id or 0)
        )

    async def get_all_for_product(self, product_id: str) -> list[PriceObservation]:
        """Full history of one product, oldest first."""
        return await self._for_product(product_id)

    async def get_history(
        self,
        product_id: str,
        limit: int = 100,
    ) -> list[PriceObservation]:
        """Most recent observations of one product, newest first."""
        history = await self._for_product(product_id)
        return list(reversed(history))[: max(0, limit)]

    async def get_history_in_range(
        self,
        product_id: str,
        start: datetime,
        end: datetime,
    ) -> list[PriceObservation]:
        """Observations with ``start <= timestamp <= end``, oldest first."""
        return [
            observation
            for observation in await self._for_product(product_id)
            if start <= observation.timestamp <= end
        ]

    async def get_latest(self, product_id: str) -> PriceObservation | None:
        history = await self._for_product(product_id)
        return history[-1] if history else None

    async def append(self, observation: PriceObservation) -> PriceObservation:
        """Store an observation and return it carrying its assigned id."""
        document = self._encode(observation)
        document.pop("id", None)
        new_id = await self._store.append(self.kind, document)
        self._changed(str(new_id))
        return observation.model_copy(update={"id": new_id})

    async def delete_older_than(self, cutoff: datetime) -> int:
        """Retention pruning: drop observations strictly before ``cutoff``."""
        stale = [
            str(observation.id)
            for observation in await self._load_all()
            if observation.timestamp < cutoff and observation.id is not None
        ]
        if not stale:
            return 0
        removed = await self._store.delete_by_ids(self.kind, stale)
        self._changed(*stale)
        logger.info("Pruned price history", removed=removed, cutoff=cutoff.isoformat())
        return removed
