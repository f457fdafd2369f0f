"""Order repository."""

from __future__ import annotations

from datetime import datetime

from companion_cache.repositories.base import DocumentRepository, encode_fields
from companion_cache.schemas.base import coerce_now
from companion_cache.schemas.enums import EntityKind, OrderStatus
from companion_cache.schemas.order import INACTIVE_STATUSES, Order


_INACTIVE_VALUES = frozenset(status.value for status in INACTIVE_STATUSES)


def _newest_first(orders: list[Order]) -> list[Order]:
    return sorted(orders, key=lambda o: o.order_date, reverse=True)


class OrderRepository(DocumentRepository[Order]):
    """Repository for orders, keyed by order id."""

    kind = EntityKind.ORDERS
    model = Order

    async def get_all(self) -> list[Order]:
        """All orders, newest order date first."""
        return _newest_first(await self._load_all())

    async def get(self, order_id: str) -> Order | None:
        return await self._load(order_id)

    async def get_active(self) -> list[Order]:
        """Orders not yet delivered, cancelled or refunded."""
        documents = await self._store.query(
            self.kind, lambda doc: doc.get("status") not in _INACTIVE_VALUES
        )
        return _newest_first(self._decode_all(documents))

    async def get_by_status(self, status: OrderStatus) -> list[Order]:
        documents = await self._store.query(
            self.kind, lambda doc: doc.get("status") == status.value
        )
        return _newest_first(self._decode_all(documents))

    async def save(self, order: Order) -> None:
        await self._store.insert_or_replace(
            self.kind, order.order_id, self._encode(order)
        )
        self._changed(order.order_id)

    async def update_status(
        self,
        order_id: str,
        status: OrderStatus,
        now: datetime | None = None,
    ) -> bool:
        updated = await self._store.update(
            self.kind,
            order_id,
            encode_fields(status=status, last_update_at=coerce_now(now)),
        )
        if updated:
            self._changed(order_id)
        return updated

    async def update_tracking(
        self,
        order_id: str,
        tracking_number: str,
        carrier: str,
        now: datetime | None = None,
    ) -> bool:
        updated = await self._store.update(
            self.kind,
            order_id,
            encode_fields(
                tracking_number=tracking_number,
                carrier=carrier,
                last_update_at=coerce_now(now),
            ),
        )
        if updated:
            self._changed(order_id)
        return updated

    async def delete(self, order_id: str) -> bool:
        removed = await self._store.delete_by_ids(self.kind, [order_id])
        if removed:
            self._changed(order_id)
        return removed > 0
