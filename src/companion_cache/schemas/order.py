"""Order tracking schema."""

from __future__ import annotations

import math
from datetime import UTC, datetime
from decimal import Decimal

from pydantic import Field

from companion_cache.schemas.base import DomainModel, UtcDatetime
from companion_cache.schemas.enums import OrderStatus


INACTIVE_STATUSES = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REFUNDED}
)

_STATUS_TEXT = {
    OrderStatus.PENDING: "Order Pending",
    OrderStatus.PROCESSING: "Processing Order",
    OrderStatus.SHIPPED: "Shipped",
    OrderStatus.IN_TRANSIT: "In Transit",
    OrderStatus.OUT_FOR_DELIVERY: "Out for Delivery",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
    OrderStatus.REFUNDED: "Refunded",
}


class Order(DomainModel):
    """A placed order and its shipment details."""

    order_id: str = Field(min_length=1)
    product_ids: list[str] = Field(default_factory=list)
    total_amount: Decimal = Field(ge=0)
    currency: str = "USD"
    order_date: UtcDatetime
    status: OrderStatus = OrderStatus.PENDING
    tracking_number: str | None = None
    carrier: str | None = None
    estimated_delivery: UtcDatetime | None = None
    shipping_address: str | None = None
    last_update_at: UtcDatetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def status_text(self) -> str:
        return _STATUS_TEXT[self.status]

    @property
    def is_active(self) -> bool:
        """Orders still moving through fulfilment."""
        return self.status not in INACTIVE_STATUSES

    def days_until_delivery(self, now: datetime | None = None) -> int | None:
        """Whole days left until the estimated delivery, never negative."""
        if self.estimated_delivery is None:
            return None
        now = now or datetime.now(UTC)
        remaining = (self.estimated_delivery - now).total_seconds() / 86400
        return max(0, math.trunc(remaining))
