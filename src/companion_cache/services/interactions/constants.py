"""Constants for the interaction log."""

from __future__ import annotations

from typing import Final

from companion_cache.schemas.enums import InteractionType


RETENTION_DAYS: Final[int] = 30
RECENT_LIMIT: Final[int] = 1000
BY_TYPE_LIMIT: Final[int] = 100

PRODUCT_DETAIL_SCREEN: Final[str] = "product_detail"
SEARCH_SCREEN: Final[str] = "search"

# Interactions that signal interest in a product and feed its cache score.
# Removals and dismissals are logged but do not count as accesses.
ENGAGEMENT_TYPES: Final[frozenset[InteractionType]] = frozenset(
    {
        InteractionType.PRODUCT_VIEW,
        InteractionType.PRODUCT_CLICK,
        InteractionType.ADD_TO_WISHLIST,
        InteractionType.START_TRACKING,
        InteractionType.SHARE_PRODUCT,
        InteractionType.NOTIFICATION_CLICKED,
    }
)
