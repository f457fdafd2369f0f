"""Services that apply cache, price-tracking and interaction policies."""

from companion_cache.services.caching import CacheService
from companion_cache.services.interactions import InteractionLogService
from companion_cache.services.price_tracking import PriceTrackingService


__all__ = ["CacheService", "InteractionLogService", "PriceTrackingService"]
