"""Pure aggregations over interaction events."""

from __future__ import annotations

from collections import Counter
from datetime import timedelta
from typing import TYPE_CHECKING

from companion_cache.schemas.base import ensure_utc
from companion_cache.schemas.interaction import ProductActivity
from companion_cache.services.interactions.constants import ENGAGEMENT_TYPES


if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from companion_cache.schemas.enums import InteractionType
    from companion_cache.schemas.interaction import InteractionEvent


def count_by_type(events: Iterable[InteractionEvent]) -> dict[InteractionType, int]:
    """Number of events per type. Types with no events are absent."""
    return dict(Counter(event.type for event in events))


def summarize_product_activity(
    events: Iterable[InteractionEvent],
    product_id: str,
    now: datetime,
    window_hours: float,
) -> ProductActivity:
    """Engagement with one product inside ``[now - window_hours, now]``.

    Only engagement types count. ``hours_since_last`` is measured to the
    latest counted event and is None when there is none.
    """
    now = ensure_utc(now)
    window_start = now - timedelta(hours=window_hours)
    timestamps = [
        event.timestamp
        for event in events
        if event.product_id == product_id
        and event.type in ENGAGEMENT_TYPES
        and window_start <= event.timestamp <= now
    ]
    if not timestamps:
        return ProductActivity(product_id=product_id, access_count=0)

    last = max(timestamps)
    return ProductActivity(
        product_id=product_id,
        access_count=len(timestamps),
        last_interaction_at=last,
        hours_since_last=(now - last).total_seconds() / 3600,
    )
