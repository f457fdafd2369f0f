"""Price tracking state transitions and alert evaluation.

All functions are pure: they take values and return new values, leaving
persistence and notification delivery to ``PriceTrackingService``.

Tracking state per product::

    NOT_TRACKED --start_tracking--> TRACKED --stop_tracking--> NOT_TRACKED

A price target can only be set while entering or re-entering TRACKED.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from companion_cache.schemas.base import coerce_now
from companion_cache.schemas.enums import PriceDirection
from companion_cache.schemas.price import PriceChange, PriceObservation
from companion_cache.services.price_tracking.constants import (
    DROP_ALERT_PERCENT,
    PERCENT_PRECISION,
)


if TYPE_CHECKING:
    from collections.abc import Iterable

    from companion_cache.schemas.product import CacheEntry


def start_tracking(
    entry: CacheEntry,
    price_target: Decimal | None = None,
    *,
    now: datetime | None = None,
) -> CacheEntry:
    """Return ``entry`` tracked from ``now`` with ``price_target``.

    Calling this on an already tracked entry restarts the tracking clock
    and replaces the target, including clearing it when None is passed.
    """
    if price_target is not None and price_target < 0:
        msg = "price_target must be >= 0"
        raise ValueError(msg)
    return entry.model_copy(
        update={
            "is_tracked": True,
            "tracking_started_at": coerce_now(now),
            "price_target": price_target,
        }
    )


def stop_tracking(entry: CacheEntry) -> CacheEntry:
    """Return ``entry`` untracked with timestamp and target cleared."""
    if (
        not entry.is_tracked
        and entry.tracking_started_at is None
        and entry.price_target is None
    ):
        return entry
    return entry.model_copy(
        update={
            "is_tracked": False,
            "tracking_started_at": None,
            "price_target": None,
        }
    )


def should_alert_on_price_drop(
    entry: CacheEntry,
    new_price: Decimal,
    *,
    drop_threshold_percent: float = DROP_ALERT_PERCENT,
) -> bool:
    """Whether moving from ``entry.price`` to ``new_price`` warrants an alert.

    Untracked entries never alert. A tracked entry alerts when the drop is at
    least ``drop_threshold_percent`` of the old price, or when a target is set
    and ``new_price`` is at or below it. A zero old price skips the
    percentage check; the target check still applies.
    """
    if not entry.is_tracked:
        return False

    if entry.price_target is not None and new_price <= entry.price_target:
        return True

    old_price = entry.price
    if old_price == 0:
        return False

    drop_percent = (old_price - new_price) / old_price * 100
    return drop_percent >= Decimal(str(drop_threshold_percent))


def compute_price_change(previous_price: Decimal, new_price: Decimal) -> PriceChange:
    """Difference, percentage and direction from ``previous_price``.

    Direction is STABLE only for an exactly zero difference.
    """
    difference = new_price - previous_price

    if difference > 0:
        direction = PriceDirection.UP
    elif difference < 0:
        direction = PriceDirection.DOWN
    else:
        direction = PriceDirection.STABLE

    percent_change = None
    if previous_price != 0:
        percent_change = round(
            float(difference / previous_price * 100), PERCENT_PRECISION
        )

    return PriceChange(
        difference=difference,
        percent_change=percent_change,
        direction=direction,
    )


def latest_observation(
    history: Iterable[PriceObservation],
    product_id: str,
) -> PriceObservation | None:
    """Most recent observation of ``product_id`` in ``history``."""
    matching = [o for o in history if o.product_id == product_id]
    if not matching:
        return None
    return max(matching, key=lambda o: (o.timestamp, o.id or 0))


def record_price_observation(
    product_id: str,
    new_price: Decimal,
    currency: str,
    history: Iterable[PriceObservation],
    *,
    now: datetime | None = None,
) -> tuple[PriceObservation, PriceChange | None]:
    """Build the observation for ``new_price`` and its change.

    The change is computed against the latest prior observation of the same
    product in ``history``; with no prior observation it is None.
    """
    observation = PriceObservation(
        product_id=product_id,
        price=new_price,
        currency=currency,
        timestamp=coerce_now(now),
    )
    previous = latest_observation(history, product_id)
    if previous is None:
        return observation, None
    return observation, compute_price_change(previous.price, new_price)
