"""Interaction log schemas."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import Field

from companion_cache.schemas.base import EventRecord, UtcDatetime, ValueObject
from companion_cache.schemas.enums import InteractionType


class InteractionEvent(EventRecord):
    """A single recorded user action. Never mutated after insertion."""

    id: int | None = None
    type: InteractionType
    screen_name: str
    action: str | None = None
    product_id: str | None = None
    duration_ms: int = Field(default=0, ge=0)
    timestamp: UtcDatetime = Field(default_factory=lambda: datetime.now(UTC))
    metadata: dict[str, Any] | None = None


class ProductActivity(ValueObject):
    """Recent activity for one product, as consumed by cache scoring."""

    product_id: str
    access_count: int = Field(ge=0)
    last_interaction_at: UtcDatetime | None = None
    hours_since_last: float | None = None
