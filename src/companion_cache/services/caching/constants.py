"""Constants for the product cache lifecycle.

These mirror the defaults in ``CacheSettings`` / ``ScoringSettings`` and are
used by the pure policy functions when no settings object is passed.
"""

from __future__ import annotations

from typing import Final


# =============================================================================
# Staleness & Eviction
# =============================================================================

STALE_THRESHOLD_HOURS: Final[float] = 24.0  # Refresh candidates
MAX_CACHE_AGE_HOURS: Final[float] = 168.0  # 7 days, then delete if unpinned
EVICTION_BATCH_SIZE: Final[int] = 10


# =============================================================================
# Scoring
# =============================================================================

FREQUENCY_WEIGHT: Final[float] = 0.6
RECENCY_WEIGHT: Final[float] = 0.4
FREQUENCY_SATURATION: Final[float] = 5.0
RECENCY_HALF_LIFE_HOURS: Final[float] = 24.0
SCORE_PRECISION: Final[int] = 4
