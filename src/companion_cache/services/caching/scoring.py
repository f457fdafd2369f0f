"""Cache-value scoring.

The score ranks how worth keeping a cached product is. It blends two terms:

    frequency = 1 - exp(-recent_accesses / saturation)
    recency   = 0.5 ** (hours_since_access / half_life)
    score     = (fw * frequency + rw * recency) / (fw + rw)

Both terms lie in [0, 1], so the weighted average does too. The score is
non-decreasing in access count and non-increasing in hours since access.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from companion_cache.schemas.product import DEFAULT_CACHE_SCORE
from companion_cache.services.caching.constants import (
    FREQUENCY_SATURATION,
    FREQUENCY_WEIGHT,
    RECENCY_HALF_LIFE_HOURS,
    RECENCY_WEIGHT,
    SCORE_PRECISION,
)


if TYPE_CHECKING:
    from companion_cache.core.config.settings import ScoringSettings
    from companion_cache.schemas.product import CacheEntry


def frequency_component(access_count: int, saturation: float) -> float:
    """Saturating frequency term in [0, 1)."""
    return 1.0 - math.exp(-max(0, access_count) / saturation)


def recency_component(recency_hours: float, half_life_hours: float) -> float:
    """Exponentially decaying recency term in (0, 1]."""
    return 0.5 ** (max(0.0, recency_hours) / half_life_hours)


def recompute_score(
    entry: CacheEntry,
    recent_access_count: int,
    recency_hours: float,
    *,
    weights: ScoringSettings | None = None,
) -> float:
    """Compute the cache score for ``entry``.

    Pure: the entry is not modified and nothing is persisted.

    Args:
        entry: The cached product being scored.
        recent_access_count: Accesses inside the scoring window.
        recency_hours: Hours since the most recent access.
        weights: Optional scoring settings; module defaults otherwise.

    Returns:
        Score in [0, 1]. Entries that were never accessed keep the
        initialization default of 0.5.
    """
    if entry.access_count == 0:
        return DEFAULT_CACHE_SCORE

    if weights is None:
        frequency_weight, recency_weight = FREQUENCY_WEIGHT, RECENCY_WEIGHT
        saturation, half_life = FREQUENCY_SATURATION, RECENCY_HALF_LIFE_HOURS
    else:
        frequency_weight, recency_weight = (
            weights.frequency_weight,
            weights.recency_weight,
        )
        saturation, half_life = (
            weights.frequency_saturation,
            weights.recency_half_life_hours,
        )

    total_weight = frequency_weight + recency_weight
    if total_weight <= 0:
        return DEFAULT_CACHE_SCORE

    raw_score = (
        frequency_weight * frequency_component(recent_access_count, saturation)
        + recency_weight * recency_component(recency_hours, half_life)
    ) / total_weight

    return round(min(1.0, max(0.0, raw_score)), SCORE_PRECISION)
