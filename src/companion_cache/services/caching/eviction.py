"""Staleness classification and eviction candidate selection.

All functions here are pure: they look at entries and return ids. Applying
deletions is the caller's job, but the pinning exemption (wishlist or
tracked) is enforced here so a pinned id is never handed out for deletion.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from companion_cache.schemas.base import ensure_utc
from companion_cache.services.caching.constants import (
    MAX_CACHE_AGE_HOURS,
    STALE_THRESHOLD_HOURS,
)


if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from companion_cache.schemas.product import CacheEntry


def is_stale(
    entry: CacheEntry,
    now: datetime,
    threshold_hours: float = STALE_THRESHOLD_HOURS,
) -> bool:
    """True iff the entry was cached more than ``threshold_hours`` ago.

    Naive timestamps are taken as UTC.
    """
    age = ensure_utc(now) - ensure_utc(entry.cached_at)
    return age > timedelta(hours=threshold_hours)


def _eviction_order(entry: CacheEntry) -> tuple:
    # Lowest value first, then oldest access, then id for determinism
    return (entry.cache_score, ensure_utc(entry.last_accessed_at), entry.id)


def select_eviction_candidates(
    entries: Iterable[CacheEntry],
    limit: int,
) -> list[str]:
    """Pick up to ``limit`` unpinned entries to evict, least valuable first.

    Ordering is ``(cache_score, last_accessed_at)`` ascending with ties
    broken by id.
    """
    if limit <= 0:
        return []
    candidates = sorted(
        (entry for entry in entries if not entry.is_pinned),
        key=_eviction_order,
    )
    return [entry.id for entry in candidates[:limit]]


def select_stale_for_deletion(
    entries: Iterable[CacheEntry],
    now: datetime,
    max_age_hours: float = MAX_CACHE_AGE_HOURS,
) -> set[str]:
    """Ids of unpinned entries cached more than ``max_age_hours`` ago."""
    return {
        entry.id
        for entry in entries
        if not entry.is_pinned and is_stale(entry, now, max_age_hours)
    }


def select_stale_for_refresh(
    entries: Iterable[CacheEntry],
    now: datetime,
    threshold_hours: float = STALE_THRESHOLD_HOURS,
) -> list[str]:
    """Ids of stale entries to re-fetch, most recently accessed first.

    Pinned entries are included: refreshing never deletes anything.
    """
    stale = [entry for entry in entries if is_stale(entry, now, threshold_hours)]
    stale.sort(key=lambda e: (ensure_utc(e.last_accessed_at), e.id), reverse=True)
    return [entry.id for entry in stale]


def select_over_capacity(
    entries: Iterable[CacheEntry],
    max_entries: int,
) -> list[str]:
    """Eviction candidates needed to shrink the cache to ``max_entries``.

    Pinned entries count toward the size but are never selected, so the
    result can leave the cache above ``max_entries`` when too much is pinned.
    """
    entry_list = list(entries)
    excess = len(entry_list) - max(0, max_entries)
    return select_eviction_candidates(entry_list, excess)
