"""Cache maintenance background tasks.

This module provides ARQ tasks for:
- Deleting unpinned products past the maximum cache age
- Evicting the lowest-value unpinned products
- Recomputing cache scores from recent activity
- Pruning old price history and interaction events

Every task is idempotent; an interrupted run is finished by the next one.
"""

from __future__ import annotations

from typing import Any, TypeVar

from companion_cache.core.exceptions import InvalidStateError
from companion_cache.observability.logging import get_logger, logging_context
from companion_cache.services.caching.service import CacheService
from companion_cache.services.interactions.service import InteractionLogService
from companion_cache.services.price_tracking.service import PriceTrackingService


logger = get_logger(__name__)

ServiceT = TypeVar("ServiceT")

CACHE_SERVICE_KEY = "cache_service"
PRICE_TRACKING_SERVICE_KEY = "price_tracking_service"
INTERACTION_SERVICE_KEY = "interaction_service"


def _service(ctx: dict[str, Any], key: str, expected: type[ServiceT]) -> ServiceT:
    service = ctx.get(key)
    if not isinstance(service, expected):
        msg = f"Worker context has no {expected.__name__} under '{key}'"
        raise InvalidStateError(msg)
    return service


async def clear_stale_cache(ctx: dict[str, Any]) -> dict[str, Any]:
    """Delete unpinned products older than the configured maximum age.

    Args:
        ctx: ARQ worker context holding the cache service.

    Returns:
        Result dict with the number of deleted products.
    """
    service = _service(ctx, CACHE_SERVICE_KEY, CacheService)
    with logging_context(task="clear_stale_cache"):
        deleted = await service.clear_stale()

    logger.info("Stale cache cleanup complete", deleted_count=len(deleted))
    return {"status": "completed", "deleted_count": len(deleted)}


async def evict_low_value_products(
    ctx: dict[str, Any],
    limit: int | None = None,
) -> dict[str, Any]:
    """Evict low-value products, then enforce the cache capacity.

    Args:
        ctx: ARQ worker context holding the cache service.
        limit: Batch size override; configured batch size otherwise.

    Returns:
        Result dict with evicted counts per step.
    """
    service = _service(ctx, CACHE_SERVICE_KEY, CacheService)
    with logging_context(task="evict_low_value_products"):
        evicted = await service.evict_low_value(limit)
        over_capacity = await service.enforce_capacity()

    logger.info(
        "Eviction sweep complete",
        evicted_count=len(evicted),
        over_capacity_count=len(over_capacity),
    )
    return {
        "status": "completed",
        "evicted_count": len(evicted),
        "over_capacity_count": len(over_capacity),
    }


async def refresh_cache_scores(ctx: dict[str, Any]) -> dict[str, Any]:
    """Recompute cache scores for every cached product."""
    service = _service(ctx, CACHE_SERVICE_KEY, CacheService)
    scores = await service.refresh_all_scores()
    return {"status": "completed", "scored_count": len(scores)}


async def clean_old_price_history(
    ctx: dict[str, Any],
    retention_days: int | None = None,
) -> dict[str, Any]:
    """Prune price observations older than the retention window."""
    service = _service(ctx, PRICE_TRACKING_SERVICE_KEY, PriceTrackingService)
    with logging_context(task="clean_old_price_history"):
        removed = await service.clean_old_history(retention_days)

    logger.info("Price history cleanup complete", removed_count=removed)
    return {"status": "completed", "removed_count": removed}


async def clean_old_interactions(
    ctx: dict[str, Any],
    retention_days: int | None = None,
) -> dict[str, Any]:
    """Prune interaction events older than the retention window."""
    service = _service(ctx, INTERACTION_SERVICE_KEY, InteractionLogService)
    removed = await service.prune(retention_days)
    return {"status": "completed", "removed_count": removed}

