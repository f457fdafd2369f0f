"""Interaction log service.

Provides methods for:
- Recording single and batched interactions, plus shortcuts for the
  common screen-view, product-view and search events
- Recent / by-type / by-product queries
- Counts grouped by type
- Per-product activity summaries feeding cache scoring
- Retention pruning
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from companion_cache.observability.logging import get_logger
from companion_cache.schemas.base import coerce_now
from companion_cache.schemas.enums import InteractionType
from companion_cache.schemas.interaction import InteractionEvent, ProductActivity
from companion_cache.services.interactions.aggregation import (
    count_by_type,
    summarize_product_activity,
)
from companion_cache.services.interactions.constants import (
    BY_TYPE_LIMIT,
    PRODUCT_DETAIL_SCREEN,
    RECENT_LIMIT,
    RETENTION_DAYS,
    SEARCH_SCREEN,
)


if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import Any

    from companion_cache.core.config.settings import InteractionSettings
    from companion_cache.repositories.interactions import InteractionRepository

logger = get_logger(__name__)


class InteractionLogService:
    """Append-only interaction log and its aggregations.

    Events are never modified once stored, so the log can serve as the
    source of truth for recent-activity signals without extra locking.
    """

    def __init__(
        self,
        repository: InteractionRepository,
        settings: InteractionSettings | None = None,
    ) -> None:
        self._repository = repository
        self._retention_days = settings.retention_days if settings else RETENTION_DAYS
        self._recent_limit = settings.recent_limit if settings else RECENT_LIMIT
        self._by_type_limit = settings.by_type_limit if settings else BY_TYPE_LIMIT

    # =========================================================================
    # Recording
    # =========================================================================

    async def record(self, event: InteractionEvent) -> InteractionEvent:
        """Append one event and return it with its assigned id."""
        stored = await self._repository.append(event)
        logger.debug(
            "Recorded interaction",
            interaction_id=stored.id,
            type=str(stored.type),
            product_id=stored.product_id,
        )
        return stored

    async def record_many(
        self,
        events: Iterable[InteractionEvent],
    ) -> list[InteractionEvent]:
        return await self._repository.append_many(events)

    async def record_screen_view(
        self,
        screen_name: str,
        duration_ms: int = 0,
    ) -> InteractionEvent:
        return await self.record(
            InteractionEvent(
                type=InteractionType.SCREEN_VIEW,
                screen_name=screen_name,
                duration_ms=duration_ms,
            )
        )

    async def record_product_view(
        self,
        product_id: str,
        duration_ms: int = 0,
        *,
        timestamp: datetime | None = None,
    ) -> InteractionEvent:
        return await self.record(
            InteractionEvent(
                type=InteractionType.PRODUCT_VIEW,
                screen_name=PRODUCT_DETAIL_SCREEN,
                product_id=product_id,
                duration_ms=duration_ms,
                timestamp=coerce_now(timestamp),
            )
        )

    async def record_search(self, query: str) -> InteractionEvent:
        return await self.record(
            InteractionEvent(
                type=InteractionType.SEARCH,
                screen_name=SEARCH_SCREEN,
                action=query,
            )
        )

    async def record_product_action(
        self,
        interaction_type: InteractionType,
        product_id: str,
        screen_name: str = PRODUCT_DETAIL_SCREEN,
        metadata: dict[str, Any] | None = None,
    ) -> InteractionEvent:
        """Record a product-scoped action such as a wishlist or tracking change."""
        return await self.record(
            InteractionEvent(
                type=interaction_type,
                screen_name=screen_name,
                product_id=product_id,
                metadata=metadata,
            )
        )

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_recent(self, limit: int | None = None) -> list[InteractionEvent]:
        """Newest events first."""
        return await self._repository.get_recent(
            self._recent_limit if limit is None else limit
        )

    async def get_by_type(
        self,
        interaction_type: InteractionType,
        limit: int | None = None,
    ) -> list[InteractionEvent]:
        return await self._repository.get_by_type(
            interaction_type, self._by_type_limit if limit is None else limit
        )

    async def get_for_product(self, product_id: str) -> list[InteractionEvent]:
        return await self._repository.get_by_product(product_id)

    async def get_counts_by_type(self) -> dict[InteractionType, int]:
        return count_by_type(await self._repository.get_all())

    async def get_product_activity(
        self,
        product_id: str,
        window_hours: float,
        now: datetime | None = None,
    ) -> ProductActivity:
        """Engagement with ``product_id`` over the last ``window_hours``."""
        events = await self._repository.get_by_product(product_id)
        return summarize_product_activity(
            events, product_id, coerce_now(now), window_hours
        )

    # =========================================================================
    # Retention
    # =========================================================================

    async def prune(
        self,
        retention_days: int | None = None,
        now: datetime | None = None,
    ) -> int:
        """Delete events older than the retention window.

        Safe to re-run; a second call with the same arguments removes nothing.

        Returns:
            Number of events deleted.
        """
        days = self._retention_days if retention_days is None else retention_days
        cutoff = coerce_now(now) - timedelta(days=days)
        removed = await self._repository.delete_older_than(cutoff)
        logger.info(
            "Pruned interaction log",
            removed=removed,
            retention_days=days,
        )
        return removed
