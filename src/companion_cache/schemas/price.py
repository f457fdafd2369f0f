"""Price history schemas."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

from pydantic import Field

from companion_cache.schemas.base import EventRecord, UtcDatetime, ValueObject
from companion_cache.schemas.enums import PriceDirection


class PriceObservation(EventRecord):
    """One observed price for a product.

    ``id`` is assigned by the store when the observation is appended.
    """

    id: int | None = None
    product_id: str
    price: Decimal = Field(ge=0)
    currency: str = "USD"
    timestamp: UtcDatetime = Field(default_factory=lambda: datetime.now(UTC))


class PriceChange(ValueObject):
    """Change between two consecutive prices of the same product.

    ``percent_change`` is None when the earlier price was zero.
    """

    difference: Decimal
    percent_change: float | None
    direction: PriceDirection

    @property
    def is_drop(self) -> bool:
        return self.direction is PriceDirection.DOWN


class PriceCheckResult(ValueObject):
    """Outcome of checking a freshly observed price.

    ``observation`` is None when the price matched the latest recorded one,
    since history only grows on a change. ``change`` is measured against the
    previous observation and is None for a product's first observation.
    """

    product_id: str
    price: Decimal
    observation: PriceObservation | None = None
    change: PriceChange | None = None
    alert_triggered: bool = False
    notified: bool = False
