"""Product cache entry schema."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

from pydantic import Field, model_validator

from companion_cache.schemas.base import DomainModel, UtcDatetime, coerce_now


DEFAULT_CACHE_SCORE = 0.5

_CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}


def _utc_now() -> datetime:
    return datetime.now(UTC)


class CacheEntry(DomainModel):
    """A cached product listing with caching, tracking and wishlist metadata.

    Pin flags and their timestamps travel together: ``is_tracked`` iff
    ``tracking_started_at`` is set, and ``is_in_wishlist`` iff
    ``added_to_wishlist_at`` is set. Documents that disagree are repaired on
    validation rather than rejected.
    """

    id: str = Field(min_length=1)
    name: str
    price: Decimal = Field(ge=0)
    currency: str = "USD"
    image_url: str = ""
    product_url: str = ""
    description: str | None = None
    category: str | None = None
    seller_id: str | None = None
    seller_name: str | None = None
    rating: float | None = Field(default=None, ge=0, le=5)
    review_count: int = Field(default=0, ge=0)
    shipping_cost: Decimal | None = Field(default=None, ge=0)
    estimated_delivery_days: int | None = Field(default=None, ge=0)

    # Caching metadata
    cached_at: UtcDatetime = Field(default_factory=_utc_now)
    last_accessed_at: UtcDatetime = Field(default_factory=_utc_now)
    access_count: int = Field(default=0, ge=0)
    cache_score: float = Field(default=DEFAULT_CACHE_SCORE, ge=0.0, le=1.0)

    # Tracking metadata
    is_tracked: bool = False
    tracking_started_at: UtcDatetime | None = None
    price_target: Decimal | None = Field(default=None, ge=0)

    # Wishlist metadata
    is_in_wishlist: bool = False
    added_to_wishlist_at: UtcDatetime | None = None

    @model_validator(mode="after")
    def _normalize_pin_flags(self) -> CacheEntry:
        if not self.is_tracked:
            self.tracking_started_at = None
            self.price_target = None
        elif self.tracking_started_at is None:
            self.tracking_started_at = self.cached_at

        if not self.is_in_wishlist:
            self.added_to_wishlist_at = None
        elif self.added_to_wishlist_at is None:
            self.added_to_wishlist_at = self.cached_at
        return self

    @property
    def is_pinned(self) -> bool:
        """Wishlisted and tracked entries are exempt from eviction."""
        return self.is_in_wishlist or self.is_tracked

    def display_price(self) -> str:
        """Format the price with a currency symbol when one is known."""
        symbol = _CURRENCY_SYMBOLS.get(self.currency)
        if symbol is None:
            return f"{self.currency} {self.price}"
        return f"{symbol}{self.price}"

    def cache_age_hours(self, now: datetime | None = None) -> float:
        """Hours elapsed since the entry was last written to the cache."""
        return (coerce_now(now) - self.cached_at).total_seconds() / 3600

    def with_access_recorded(self, now: datetime | None = None) -> CacheEntry:
        """Return a copy with one more access at ``now``."""
        return self.model_copy(
            update={
                "last_accessed_at": coerce_now(now),
                "access_count": self.access_count + 1,
            }
        )

    def with_cache_score(self, score: float) -> CacheEntry:
        """Return a copy carrying ``score`` clamped to [0, 1]."""
        return self.model_copy(update={"cache_score": min(1.0, max(0.0, score))})
