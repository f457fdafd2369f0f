"""Product cache repository.

Provides data access for cached product entries: lookups and filtered
listings (wishlist, tracked, category, search), atomic access recording,
score and price updates, pin changes and deletion.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from companion_cache.observability.logging import get_logger
from companion_cache.repositories.base import DocumentRepository, encode_fields
from companion_cache.schemas.base import coerce_now
from companion_cache.schemas.enums import EntityKind
from companion_cache.schemas.product import CacheEntry


if TYPE_CHECKING:
    from collections.abc import Iterable
    from decimal import Decimal


logger = get_logger(__name__)


def _by_last_access(entries: list[CacheEntry]) -> list[CacheEntry]:
    return sorted(entries, key=lambda e: e.last_accessed_at, reverse=True)


class ProductRepository(DocumentRepository[CacheEntry]):
    """Repository for cached products, keyed by product id."""

    kind = EntityKind.PRODUCTS
    model = CacheEntry

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_all(self) -> list[CacheEntry]:
        """All cached products, most recently accessed first."""
        return _by_last_access(await self._load_all())

    async def get(self, product_id: str) -> CacheEntry | None:
        return await self._load(product_id)

    async def search(self, query: str) -> list[CacheEntry]:
        """Case-insensitive substring match on name or description."""
        needle = query.strip().casefold()
        if not needle:
            return []

        def matches(doc: dict) -> bool:
            name = (doc.get("name") or "").casefold()
            description = (doc.get("description") or "").casefold()
            return needle in name or needle in description

        documents = await self._store.query(self.kind, matches)
        return _by_last_access(self._decode_all(documents))

    async def get_by_category(self, category: str) -> list[CacheEntry]:
        documents = await self._store.query(
            self.kind, lambda doc: doc.get("category") == category
        )
        return _by_last_access(self._decode_all(documents))

    async def get_recently_viewed(self, limit: int = 20) -> list[CacheEntry]:
        return (await self.get_all())[: max(0, limit)]

    async def get_wishlist(self) -> list[CacheEntry]:
        """Wishlisted products, most recently added first."""
        documents = await self._store.query(
            self.kind, lambda doc: bool(doc.get("isInWishlist"))
        )
        entries = self._decode_all(documents)
        return sorted(entries, key=lambda e: e.added_to_wishlist_at, reverse=True)

    async def get_tracked(self) -> list[CacheEntry]:
        """Price-tracked products, most recently started first."""
        documents = await self._store.query(
            self.kind, lambda doc: bool(doc.get("isTracked"))
        )
        entries = self._decode_all(documents)
        return sorted(entries, key=lambda e: e.tracking_started_at, reverse=True)

    async def get_with_target_hit(self) -> list[CacheEntry]:
        """Tracked products whose cached price is at or below their target."""
        return [
            entry
            for entry in await self.get_tracked()
            if entry.price_target is not None and entry.price <= entry.price_target
        ]

    # =========================================================================
    # Writes
    # =========================================================================

    async def save(self, entry: CacheEntry) -> None:
        """Insert or replace a product."""
        await self._store.insert_or_replace(self.kind, entry.id, self._encode(entry))
        self._changed(entry.id)

    async def save_all(self, entries: Iterable[CacheEntry]) -> None:
        saved = []
        for entry in entries:
            await self._store.insert_or_replace(
                self.kind, entry.id, self._encode(entry)
            )
            saved.append(entry.id)
        self._changed(*saved)

    async def record_access(
        self,
        product_id: str,
        now: datetime | None = None,
    ) -> bool:
        """Atomically bump the access count and last-access time.

        Returns:
            False if the product is not cached.
        """
        updated = await self._store.increment(
            self.kind,
            product_id,
            "accessCount",
            1,
            set_fields=encode_fields(last_accessed_at=coerce_now(now)),
        )
        if updated:
            self._changed(product_id)
        return updated

    async def update_cache_score(self, product_id: str, score: float) -> bool:
        score = min(1.0, max(0.0, score))
        updated = await self._store.update(
            self.kind, product_id, encode_fields(cache_score=score)
        )
        if updated:
            self._changed(product_id)
        return updated

    async def update_price(
        self,
        product_id: str,
        new_price: Decimal,
        now: datetime | None = None,
    ) -> bool:
        """Store a freshly observed price; this also refreshes ``cached_at``."""
        updated = await self._store.update(
            self.kind,
            product_id,
            encode_fields(price=new_price, cached_at=coerce_now(now)),
        )
        if updated:
            self._changed(product_id)
        return updated

    async def add_to_wishlist(
        self,
        product_id: str,
        now: datetime | None = None,
    ) -> bool:
        updated = await self._store.update(
            self.kind,
            product_id,
            encode_fields(
                is_in_wishlist=True,
                added_to_wishlist_at=coerce_now(now),
            ),
        )
        if updated:
            self._changed(product_id)
        return updated

    async def remove_from_wishlist(self, product_id: str) -> bool:
        updated = await self._store.update(
            self.kind,
            product_id,
            encode_fields(is_in_wishlist=False, added_to_wishlist_at=None),
        )
        if updated:
            self._changed(product_id)
        return updated

    async def save_tracking(self, entry: CacheEntry) -> bool:
        """Persist only the tracking fields of ``entry``."""
        updated = await self._store.update(
            self.kind,
            entry.id,
            encode_fields(
                is_tracked=entry.is_tracked,
                tracking_started_at=entry.tracking_started_at,
                price_target=entry.price_target,
            ),
        )
        if updated:
            self._changed(entry.id)
        return updated

    async def delete_if_unpinned(self, product_id: str) -> bool:
        """Delete a product unless it is wishlisted or tracked at delete time.

        Returns:
            False if the product is missing or pinned.
        """
        removed = await self._store.delete_if(
            self.kind,
            product_id,
            lambda doc: not doc.get("isInWishlist") and not doc.get("isTracked"),
        )
        if removed:
            self._changed(product_id)
        return removed

    async def delete_by_ids(self, product_ids: Iterable[str]) -> int:
        ids = list(product_ids)
        removed = await self._store.delete_by_ids(self.kind, ids)
        if removed:
            self._changed(*ids)
        logger.debug("Deleted cached products", requested=len(ids), removed=removed)
        return removed

    async def clear(self) -> int:
        """Delete every cached product, pinned ones included."""
        entries = await self._store.get_all(self.kind)
        removed = await self._store.clear(self.kind)
        self._changed(*(doc["id"] for doc in entries))
        return removed
