"""Pydantic schemas for cached entities and derived values."""

from companion_cache.schemas.enums import (
    Density,
    EntityKind,
    InteractionType,
    Layout,
    OrderStatus,
    PriceDirection,
    Theme,
)
from companion_cache.schemas.interaction import InteractionEvent, ProductActivity
from companion_cache.schemas.order import Order
from companion_cache.schemas.preferences import DEFAULT_USER_ID, UserPreferences
from companion_cache.schemas.price import (
    PriceChange,
    PriceCheckResult,
    PriceObservation,
)
from companion_cache.schemas.product import DEFAULT_CACHE_SCORE, CacheEntry


__all__ = [
    "DEFAULT_CACHE_SCORE",
    "DEFAULT_USER_ID",
    "CacheEntry",
    "Density",
    "EntityKind",
    "InteractionEvent",
    "InteractionType",
    "Layout",
    "Order",
    "OrderStatus",
    "PriceChange",
    "PriceCheckResult",
    "PriceDirection",
    "PriceObservation",
    "ProductActivity",
    "Theme",
    "UserPreferences",
]
