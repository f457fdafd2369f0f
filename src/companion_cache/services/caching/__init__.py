"""Product cache lifecycle module.

Provides scoring, staleness and eviction policies and the service that
applies them to the product store.
"""

from companion_cache.services.caching.eviction import (
    is_stale,
    select_eviction_candidates,
    select_over_capacity,
    select_stale_for_deletion,
    select_stale_for_refresh,
)
from companion_cache.services.caching.scoring import recompute_score
from companion_cache.services.caching.service import CacheService


__all__ = [
    "CacheService",
    "is_stale",
    "recompute_score",
    "select_eviction_candidates",
    "select_over_capacity",
    "select_stale_for_deletion",
    "select_stale_for_refresh",
]
