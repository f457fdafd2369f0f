"""Interaction log module.

Append-only record of user actions with aggregations feeding cache scoring.
"""

from companion_cache.services.interactions.aggregation import (
    count_by_type,
    summarize_product_activity,
)
from companion_cache.services.interactions.service import InteractionLogService


__all__ = ["InteractionLogService", "count_by_type", "summarize_product_activity"]
