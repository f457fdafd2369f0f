"""Product cache service.

Orchestrates:
1. Access recording (atomic store increment + interaction log entry)
2. Score recomputation from recent interaction activity
3. Stale detection for refresh
4. Eviction of low-value entries and age-based cleanup

Each delete checks pin status atomically in the store, so an entry pinned
after candidate selection survives the sweep. Sweeps are idempotent
and may be interrupted and re-run at any point.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from companion_cache.core.exceptions import EntryNotFoundError
from companion_cache.observability.logging import get_logger
from companion_cache.schemas.base import coerce_now
from companion_cache.schemas.enums import EntityKind, InteractionType
from companion_cache.services.caching.constants import (
    EVICTION_BATCH_SIZE,
    MAX_CACHE_AGE_HOURS,
    STALE_THRESHOLD_HOURS,
)
from companion_cache.services.caching.eviction import (
    select_eviction_candidates,
    select_over_capacity,
    select_stale_for_deletion,
    select_stale_for_refresh,
)
from companion_cache.services.caching.scoring import recompute_score


if TYPE_CHECKING:
    from collections.abc import Iterable

    from companion_cache.core.config.settings import CacheSettings, ScoringSettings
    from companion_cache.repositories.products import ProductRepository
    from companion_cache.schemas.product import CacheEntry
    from companion_cache.services.interactions.service import InteractionLogService

logger = get_logger(__name__)


class CacheService:
    """Applies the scoring and eviction policies to the product store.

    Args:
        products: Product repository over the injected store.
        interactions: Optional interaction log; when present it records
            product views and supplies recent activity for scoring.
        settings: Cache thresholds; module defaults when omitted.
        scoring: Scoring weights; module defaults when omitted.
    """

    def __init__(
        self,
        products: ProductRepository,
        interactions: InteractionLogService | None = None,
        settings: CacheSettings | None = None,
        scoring: ScoringSettings | None = None,
    ) -> None:
        self._products = products
        self._interactions = interactions
        self._scoring = scoring
        self._stale_threshold_hours = (
            settings.stale_threshold_hours if settings else STALE_THRESHOLD_HOURS
        )
        self._max_age_hours = settings.max_age_hours if settings else MAX_CACHE_AGE_HOURS
        self._eviction_batch_size = (
            settings.eviction_batch_size if settings else EVICTION_BATCH_SIZE
        )
        self._max_entries = settings.max_entries if settings else None
        self._recent_window_hours = settings.recent_window_hours if settings else 72.0

    # =========================================================================
    # Lookups
    # =========================================================================

    async def get_product(self, product_id: str) -> CacheEntry | None:
        """Return the cached entry, or None.

        Remote fetching is not part of this library; a miss stays a miss.
        """
        return await self._products.get(product_id)

    async def require_product(self, product_id: str) -> CacheEntry:
        """Return the cached entry or raise ``EntryNotFoundError``."""
        entry = await self._products.get(product_id)
        if entry is None:
            raise EntryNotFoundError(EntityKind.PRODUCTS.value, product_id)
        return entry

    async def cache_product(self, entry: CacheEntry) -> None:
        """Insert or replace a product fetched by the caller."""
        await self._products.save(entry)
        logger.debug("Cached product", product_id=entry.id)

    async def cache_size(self) -> int:
        return await self._products.count()

    # =========================================================================
    # Access & scoring
    # =========================================================================

    async def record_access(
        self,
        product_id: str,
        now: datetime | None = None,
        duration_ms: int = 0,
    ) -> bool:
        """Count a view of ``product_id``.

        Returns:
            False when the product is not cached; nothing is recorded then.
        """
        now = coerce_now(now)
        if not await self._products.record_access(product_id, now):
            logger.debug("Access to uncached product ignored", product_id=product_id)
            return False
        if self._interactions is not None:
            await self._interactions.record_product_view(
                product_id, duration_ms, timestamp=now
            )
        return True

    async def refresh_score(
        self,
        product_id: str,
        now: datetime | None = None,
    ) -> float:
        """Recompute and persist the cache score of one product.

        Raises:
            EntryNotFoundError: If the product is not cached.
        """
        now = coerce_now(now)
        entry = await self.require_product(product_id)
        score = await self._score(entry, now)
        await self._products.update_cache_score(product_id, score)
        logger.debug(
            "Refreshed cache score",
            product_id=product_id,
            previous=entry.cache_score,
            score=score,
        )
        return score

    async def refresh_all_scores(self, now: datetime | None = None) -> dict[str, float]:
        """Recompute scores for every cached product."""
        now = coerce_now(now)
        scores: dict[str, float] = {}
        for entry in await self._products.get_all():
            scores[entry.id] = await self._score(entry, now)
            if scores[entry.id] != entry.cache_score:
                await self._products.update_cache_score(entry.id, scores[entry.id])
        logger.info("Refreshed cache scores", products=len(scores))
        return scores

    async def _score(self, entry: CacheEntry, now: datetime) -> float:
        recency_hours = max(0.0, (now - entry.last_accessed_at).total_seconds() / 3600)
        recent_accesses = entry.access_count

        if self._interactions is not None:
            activity = await self._interactions.get_product_activity(
                entry.id, self._recent_window_hours, now
            )
            recent_accesses = activity.access_count
            if activity.hours_since_last is not None:
                recency_hours = min(recency_hours, activity.hours_since_last)

        return recompute_score(
            entry, recent_accesses, recency_hours, weights=self._scoring
        )

    # =========================================================================
    # Wishlist
    # =========================================================================

    async def add_to_wishlist(
        self,
        product_id: str,
        now: datetime | None = None,
    ) -> CacheEntry:
        """Pin a product to the wishlist.

        Raises:
            EntryNotFoundError: If the product is not cached.
        """
        if not await self._products.add_to_wishlist(product_id, now):
            raise EntryNotFoundError(EntityKind.PRODUCTS.value, product_id)
        if self._interactions is not None:
            await self._interactions.record_product_action(
                InteractionType.ADD_TO_WISHLIST, product_id
            )
        logger.info("Added product to wishlist", product_id=product_id)
        return await self.require_product(product_id)

    async def remove_from_wishlist(self, product_id: str) -> CacheEntry:
        """Unpin a product from the wishlist.

        Raises:
            EntryNotFoundError: If the product is not cached.
        """
        if not await self._products.remove_from_wishlist(product_id):
            raise EntryNotFoundError(EntityKind.PRODUCTS.value, product_id)
        if self._interactions is not None:
            await self._interactions.record_product_action(
                InteractionType.REMOVE_FROM_WISHLIST, product_id
            )
        logger.info("Removed product from wishlist", product_id=product_id)
        return await self.require_product(product_id)

    async def get_wishlist(self) -> list[CacheEntry]:
        return await self._products.get_wishlist()

    # =========================================================================
    # Staleness & eviction
    # =========================================================================

    async def get_stale_for_refresh(
        self,
        now: datetime | None = None,
        threshold_hours: float | None = None,
    ) -> list[CacheEntry]:
        """Stale entries to re-fetch, most recently accessed first."""
        entries = await self._products.get_all()
        by_id = {entry.id: entry for entry in entries}
        stale_ids = select_stale_for_refresh(
            entries,
            coerce_now(now),
            self._stale_threshold_hours if threshold_hours is None else threshold_hours,
        )
        return [by_id[product_id] for product_id in stale_ids]

    async def evict_low_value(self, limit: int | None = None) -> list[str]:
        """Evict up to ``limit`` of the least valuable unpinned entries.

        Returns:
            Ids actually deleted, in eviction order.
        """
        limit = self._eviction_batch_size if limit is None else limit
        candidates = select_eviction_candidates(await self._products.get_all(), limit)
        evicted = await self._delete_unpinned(candidates)
        logger.info(
            "Evicted low-value products",
            candidates=len(candidates),
            evicted=len(evicted),
        )
        return evicted

    async def enforce_capacity(self, max_entries: int | None = None) -> list[str]:
        """Evict until at most ``max_entries`` remain (pinned entries excepted)."""
        max_entries = self._max_entries if max_entries is None else max_entries
        if max_entries is None:
            return []
        candidates = select_over_capacity(await self._products.get_all(), max_entries)
        if not candidates:
            return []
        evicted = await self._delete_unpinned(candidates)
        logger.info(
            "Enforced cache capacity",
            max_entries=max_entries,
            evicted=len(evicted),
        )
        return evicted

    async def clear_stale(
        self,
        max_age_hours: float | None = None,
        now: datetime | None = None,
    ) -> list[str]:
        """Delete unpinned entries older than ``max_age_hours``.

        Returns:
            Ids actually deleted, sorted.
        """
        max_age = self._max_age_hours if max_age_hours is None else max_age_hours
        stale = select_stale_for_deletion(
            await self._products.get_all(), coerce_now(now), max_age
        )
        deleted = await self._delete_unpinned(sorted(stale))
        logger.info(
            "Cleared stale cache entries",
            max_age_hours=max_age,
            deleted=len(deleted),
        )
        return deleted

    async def clear_cache(self) -> int:
        """Delete every cached product, pinned ones included."""
        removed = await self._products.clear()
        logger.info("Cleared product cache", removed=removed)
        return removed

    async def _delete_unpinned(self, product_ids: Iterable[str]) -> list[str]:
        """Delete each candidate that is still unpinned at its own delete."""
        deleted: list[str] = []
        for product_id in product_ids:
            if await self._products.delete_if_unpinned(product_id):
                deleted.append(product_id)
            else:
                logger.debug(
                    "Skipping entry removed or pinned since selection",
                    product_id=product_id,
                )
        return deleted
