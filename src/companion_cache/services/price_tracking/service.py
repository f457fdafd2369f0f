"""Price tracking service.

Handles:
- Starting and stopping tracking on cached products
- Recording observed prices into the append-only history
- Evaluating price-drop alerts and handing them to the notifier
- History queries and retention cleanup
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from companion_cache.core.exceptions import EntryNotFoundError
from companion_cache.observability.logging import get_logger
from companion_cache.schemas.base import coerce_now
from companion_cache.schemas.enums import EntityKind, InteractionType, PriceDirection
from companion_cache.schemas.price import PriceChange, PriceCheckResult
from companion_cache.services.price_tracking.constants import (
    DROP_ALERT_PERCENT,
    HISTORY_LIMIT,
    HISTORY_RETENTION_DAYS,
)
from companion_cache.services.price_tracking.policy import (
    compute_price_change,
    record_price_observation,
    should_alert_on_price_drop,
    start_tracking,
    stop_tracking,
)


if TYPE_CHECKING:
    from decimal import Decimal

    from companion_cache.core.config.settings import PriceTrackingSettings
    from companion_cache.repositories.preferences import PreferencesRepository
    from companion_cache.repositories.price_history import PriceHistoryRepository
    from companion_cache.repositories.products import ProductRepository
    from companion_cache.schemas.price import PriceObservation
    from companion_cache.schemas.product import CacheEntry
    from companion_cache.services.interactions.service import InteractionLogService

logger = get_logger(__name__)

PriceAlertNotifier = Callable[[str, PriceChange], Awaitable[None] | None]
"""Receives ``(product_id, change)`` for each alert; may be sync or async."""


class PriceTrackingService:
    """Service tying the tracking policy to the product and history stores."""

    def __init__(
        self,
        products: ProductRepository,
        price_history: PriceHistoryRepository,
        *,
        preferences: PreferencesRepository | None = None,
        interactions: InteractionLogService | None = None,
        notifier: PriceAlertNotifier | None = None,
        settings: PriceTrackingSettings | None = None,
    ) -> None:
        self._products = products
        self._price_history = price_history
        self._preferences = preferences
        self._interactions = interactions
        self._notifier = notifier
        self._drop_alert_percent = (
            settings.drop_alert_percent if settings else DROP_ALERT_PERCENT
        )
        self._retention_days = (
            settings.history_retention_days if settings else HISTORY_RETENTION_DAYS
        )
        self._history_limit = settings.history_limit if settings else HISTORY_LIMIT

    async def _require(self, product_id: str) -> CacheEntry:
        entry = await self._products.get(product_id)
        if entry is None:
            raise EntryNotFoundError(EntityKind.PRODUCTS.value, product_id)
        return entry

    # =========================================================================
    # Tracking state
    # =========================================================================

    async def start_tracking(
        self,
        product_id: str,
        price_target: Decimal | None = None,
        now: datetime | None = None,
    ) -> CacheEntry:
        """Track a cached product, optionally with a target price.

        Raises:
            EntryNotFoundError: If the product is not cached.
        """
        entry = start_tracking(
            await self._require(product_id), price_target, now=now
        )
        await self._products.save_tracking(entry)

        if self._interactions is not None:
            metadata = None
            if price_target is not None:
                metadata = {"priceTarget": str(price_target)}
            await self._interactions.record_product_action(
                InteractionType.START_TRACKING, product_id, metadata=metadata
            )

        logger.info(
            "Started price tracking",
            product_id=product_id,
            price_target=str(price_target) if price_target is not None else None,
        )
        return entry

    async def stop_tracking(self, product_id: str) -> CacheEntry:
        """Stop tracking a product. Stopping an untracked product is a no-op.

        Raises:
            EntryNotFoundError: If the product is not cached.
        """
        current = await self._require(product_id)
        entry = stop_tracking(current)
        if entry is current:
            return entry

        await self._products.save_tracking(entry)
        if self._interactions is not None:
            await self._interactions.record_product_action(
                InteractionType.STOP_TRACKING, product_id
            )
        logger.info("Stopped price tracking", product_id=product_id)
        return entry

    # =========================================================================
    # Observations & alerts
    # =========================================================================

    async def observe_price(
        self,
        product_id: str,
        new_price: Decimal,
        now: datetime | None = None,
    ) -> PriceCheckResult:
        """Record a freshly fetched price for a cached product.

        The observation is appended to history when it is the product's
        first one or the price moved. The cached price is updated, which also
        refreshes its cache time. If the drop qualifies for an alert and the
        user's preferences allow one right now, the notifier is called with
        the change from the previously cached price.

        Raises:
            EntryNotFoundError: If the product is not cached.
        """
        now = coerce_now(now)
        entry = await self._require(product_id)

        latest = await self._price_history.get_latest(product_id)
        observation, change = record_price_observation(
            product_id,
            new_price,
            entry.currency,
            [latest] if latest is not None else [],
            now=now,
        )

        stored: PriceObservation | None = None
        if change is None or change.direction is not PriceDirection.STABLE:
            stored = await self._price_history.append(observation)

        await self._products.update_price(product_id, new_price, now)

        alert = should_alert_on_price_drop(
            entry, new_price, drop_threshold_percent=self._drop_alert_percent
        )
        notified = False
        if alert:
            notified = await self._notify(
                product_id, compute_price_change(entry.price, new_price), now
            )

        logger.debug(
            "Observed price",
            product_id=product_id,
            price=str(new_price),
            recorded=stored is not None,
            alert=alert,
            notified=notified,
        )
        return PriceCheckResult(
            product_id=product_id,
            price=new_price,
            observation=stored,
            change=change,
            alert_triggered=alert,
            notified=notified,
        )

    async def _notify(
        self,
        product_id: str,
        change: PriceChange,
        now: datetime,
    ) -> bool:
        if self._notifier is None:
            return False
        if self._preferences is not None:
            preferences = await self._preferences.get()
            if not preferences.allows_price_drop_alert(now):
                logger.debug("Price drop alert suppressed", product_id=product_id)
                return False

        result = self._notifier(product_id, change)
        if inspect.isawaitable(result):
            await result
        logger.info(
            "Price drop alert sent",
            product_id=product_id,
            percent_change=change.percent_change,
        )
        return True

    # =========================================================================
    # History
    # =========================================================================

    async def get_price_history(
        self,
        product_id: str,
        limit: int | None = None,
    ) -> list[PriceObservation]:
        """Newest observations first."""
        return await self._price_history.get_history(
            product_id, self._history_limit if limit is None else limit
        )

    async def get_price_history_in_range(
        self,
        product_id: str,
        start: datetime,
        end: datetime,
    ) -> list[PriceObservation]:
        return await self._price_history.get_history_in_range(product_id, start, end)

    async def get_price_changes(self, product_id: str) -> list[PriceChange]:
        """Change between each consecutive pair of observations, oldest first."""
        history = await self._price_history.get_all_for_product(product_id)
        return [
            compute_price_change(previous.price, current.price)
            for previous, current in zip(history, history[1:], strict=False)
        ]

    async def clean_old_history(
        self,
        retention_days: int | None = None,
        now: datetime | None = None,
    ) -> int:
        """Delete observations older than the retention window."""
        days = self._retention_days if retention_days is None else retention_days
        cutoff = coerce_now(now) - timedelta(days=days)
        return await self._price_history.delete_older_than(cutoff)
