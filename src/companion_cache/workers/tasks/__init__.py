"""Background task definitions."""

from companion_cache.workers.tasks.maintenance import (
    clean_old_interactions,
    clean_old_price_history,
    clear_stale_cache,
    evict_low_value_products,
    refresh_cache_scores,
)


__all__ = [
    "clean_old_interactions",
    "clean_old_price_history",
    "clear_stale_cache",
    "evict_low_value_products",
    "refresh_cache_scores",
]
