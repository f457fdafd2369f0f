"""Unit tests for PriceTrackingService.

Tests cover:
- Start/stop tracking persistence and interaction logging
- Price observation recording and history growth
- Alert delivery to sync and async notifiers
- Preference gating (disabled alerts, quiet hours)
- History queries and retention cleanup
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from companion_cache.core.config.settings import PriceTrackingSettings
from companion_cache.core.exceptions import EntryNotFoundError
from companion_cache.repositories import (
    PreferencesRepository,
    PriceHistoryRepository,
    ProductRepository,
)
from companion_cache.schemas.enums import InteractionType, PriceDirection
from companion_cache.schemas.preferences import UserPreferences
from companion_cache.services.interactions.service import InteractionLogService
from companion_cache.services.price_tracking.service import PriceTrackingService
from tests.factories.prices import PriceObservationFactory
from tests.factories.products import CacheEntryFactory


pytestmark = pytest.mark.unit


def _service(
    products: ProductRepository,
    price_history: PriceHistoryRepository,
    preferences: PreferencesRepository,
    notifier: object,
) -> PriceTrackingService:
    return PriceTrackingService(
        products,
        price_history,
        preferences=preferences,
        notifier=notifier,  # type: ignore[arg-type]
    )


class TestTracking:
    """Tests for start_tracking and stop_tracking."""

    @pytest.mark.asyncio
    async def test_start_tracking_persists_and_logs(
        self,
        price_tracking_service: PriceTrackingService,
        products: ProductRepository,
        interaction_service: InteractionLogService,
        now: datetime,
    ) -> None:
        """Should store tracking fields and record START_TRACKING."""
        await products.save(CacheEntryFactory.build(id="p1"))

        entry = await price_tracking_service.start_tracking("p1", Decimal(40), now)

        stored = await products.get("p1")
        assert stored == entry
        assert stored.is_tracked is True
        assert stored.tracking_started_at == now
        assert stored.price_target == Decimal(40)
        [event] = await interaction_service.get_by_type(InteractionType.START_TRACKING)
        assert event.product_id == "p1"
        assert event.metadata == {"priceTarget": "40"}

    @pytest.mark.asyncio
    async def test_stop_tracking_clears_and_logs(
        self,
        price_tracking_service: PriceTrackingService,
        products: ProductRepository,
        interaction_service: InteractionLogService,
    ) -> None:
        """Should clear tracking fields and record STOP_TRACKING."""
        await products.save(CacheEntryFactory.tracked(id="p1", price_target=Decimal(5)))

        await price_tracking_service.stop_tracking("p1")

        stored = await products.get("p1")
        assert stored.is_tracked is False
        assert stored.tracking_started_at is None
        assert stored.price_target is None
        assert len(await interaction_service.get_by_type(InteractionType.STOP_TRACKING)) == 1

    @pytest.mark.asyncio
    async def test_stop_tracking_untracked_is_noop(
        self,
        price_tracking_service: PriceTrackingService,
        products: ProductRepository,
        interaction_service: InteractionLogService,
    ) -> None:
        """Should not write or log anything for an untracked product."""
        await products.save(CacheEntryFactory.build(id="p1"))

        await price_tracking_service.stop_tracking("p1")

        assert await interaction_service.get_recent() == []

    @pytest.mark.asyncio
    async def test_missing_product_raises(
        self, price_tracking_service: PriceTrackingService
    ) -> None:
        """Should raise EntryNotFoundError for unknown products."""
        with pytest.raises(EntryNotFoundError):
            await price_tracking_service.start_tracking("missing")
        with pytest.raises(EntryNotFoundError):
            await price_tracking_service.stop_tracking("missing")
        with pytest.raises(EntryNotFoundError):
            await price_tracking_service.observe_price("missing", Decimal(1))


class TestObservePrice:
    """Tests for observe_price."""

    @pytest.mark.asyncio
    async def test_first_observation_is_recorded(
        self,
        price_tracking_service: PriceTrackingService,
        products: ProductRepository,
        price_history: PriceHistoryRepository,
        now: datetime,
    ) -> None:
        """Should append the first observation with no change."""
        await products.save(CacheEntryFactory.build(id="p1", price=Decimal(100)))

        result = await price_tracking_service.observe_price("p1", Decimal(100), now)

        assert result.change is None
        assert result.observation is not None
        assert result.observation.id == 1
        assert result.alert_triggered is False
        assert len(await price_history.get_history("p1")) == 1

    @pytest.mark.asyncio
    async def test_unchanged_price_is_not_recorded(
        self,
        price_tracking_service: PriceTrackingService,
        products: ProductRepository,
        price_history: PriceHistoryRepository,
        now: datetime,
    ) -> None:
        """Should skip history when the price matches the latest observation."""
        await products.save(CacheEntryFactory.build(id="p1", price=Decimal(100)))
        await price_tracking_service.observe_price("p1", Decimal(100), now)

        result = await price_tracking_service.observe_price(
            "p1", Decimal(100), now + timedelta(hours=1)
        )

        assert result.observation is None
        assert result.change is not None
        assert result.change.direction is PriceDirection.STABLE
        assert len(await price_history.get_history("p1")) == 1

    @pytest.mark.asyncio
    async def test_updates_cached_price_and_time(
        self,
        price_tracking_service: PriceTrackingService,
        products: ProductRepository,
        now: datetime,
    ) -> None:
        """Should store the new price and refresh cached_at."""
        await products.save(
            CacheEntryFactory.aged(now, hours=48, id="p1", price=Decimal(100))
        )

        await price_tracking_service.observe_price("p1", Decimal(80), now)

        stored = await products.get("p1")
        assert stored.price == Decimal(80)
        assert stored.cached_at == now

    @pytest.mark.asyncio
    async def test_drop_alert_calls_sync_notifier(
        self,
        products: ProductRepository,
        price_history: PriceHistoryRepository,
        preferences: PreferencesRepository,
        now: datetime,
    ) -> None:
        """Should call a plain callable with the change from the cached price."""
        notifier = MagicMock(return_value=None)
        service = _service(products, price_history, preferences, notifier)
        await products.save(CacheEntryFactory.tracked(id="p1", price=Decimal(100)))

        result = await service.observe_price("p1", Decimal(89), now)

        assert result.alert_triggered is True
        assert result.notified is True
        notifier.assert_called_once()
        product_id, change = notifier.call_args.args
        assert product_id == "p1"
        assert change.difference == Decimal(-11)
        assert change.direction is PriceDirection.DOWN

    @pytest.mark.asyncio
    async def test_drop_alert_awaits_async_notifier(
        self,
        products: ProductRepository,
        price_history: PriceHistoryRepository,
        preferences: PreferencesRepository,
        now: datetime,
    ) -> None:
        """Should await a coroutine notifier."""
        notifier = AsyncMock()
        service = _service(products, price_history, preferences, notifier)
        await products.save(
            CacheEntryFactory.tracked(id="p1", price=Decimal(100), price_target=Decimal(95))
        )

        result = await service.observe_price("p1", Decimal(95), now)

        assert result.notified is True
        notifier.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_small_drop_does_not_notify(
        self,
        products: ProductRepository,
        price_history: PriceHistoryRepository,
        preferences: PreferencesRepository,
        now: datetime,
    ) -> None:
        """Should not alert on a 5 % drop without a target."""
        notifier = MagicMock()
        service = _service(products, price_history, preferences, notifier)
        await products.save(CacheEntryFactory.tracked(id="p1", price=Decimal(100)))

        result = await service.observe_price("p1", Decimal(95), now)

        assert result.alert_triggered is False
        notifier.assert_not_called()

    @pytest.mark.asyncio
    async def test_untracked_product_never_notifies(
        self,
        products: ProductRepository,
        price_history: PriceHistoryRepository,
        preferences: PreferencesRepository,
        now: datetime,
    ) -> None:
        """Should not alert for untracked products however large the drop."""
        notifier = MagicMock()
        service = _service(products, price_history, preferences, notifier)
        await products.save(CacheEntryFactory.build(id="p1", price=Decimal(100)))

        result = await service.observe_price("p1", Decimal(10), now)

        assert result.alert_triggered is False
        notifier.assert_not_called()

    @pytest.mark.asyncio
    async def test_disabled_price_drop_notifications_suppress_alert(
        self,
        products: ProductRepository,
        price_history: PriceHistoryRepository,
        preferences: PreferencesRepository,
        now: datetime,
    ) -> None:
        """Should evaluate the alert but not deliver it."""
        notifier = MagicMock()
        service = _service(products, price_history, preferences, notifier)
        await preferences.save(UserPreferences(enable_price_drop_notifications=False))
        await products.save(CacheEntryFactory.tracked(id="p1", price=Decimal(100)))

        result = await service.observe_price("p1", Decimal(50), now)

        assert result.alert_triggered is True
        assert result.notified is False
        notifier.assert_not_called()

    @pytest.mark.asyncio
    async def test_quiet_hours_suppress_alert(
        self,
        products: ProductRepository,
        price_history: PriceHistoryRepository,
        preferences: PreferencesRepository,
        now: datetime,
    ) -> None:
        """Should not deliver alerts inside the Do Not Disturb window."""
        notifier = MagicMock()
        service = _service(products, price_history, preferences, notifier)
        await preferences.save(
            UserPreferences(dnd_enabled=True, dnd_start_hour=22, dnd_end_hour=8)
        )
        await products.save(CacheEntryFactory.tracked(id="p1", price=Decimal(100)))
        late_night = now.replace(hour=23)

        result = await service.observe_price("p1", Decimal(50), late_night)

        assert result.notified is False
        notifier.assert_not_called()

    @pytest.mark.asyncio
    async def test_custom_drop_threshold(
        self,
        products: ProductRepository,
        price_history: PriceHistoryRepository,
        now: datetime,
    ) -> None:
        """Should use the configured drop percentage."""
        service = PriceTrackingService(
            products,
            price_history,
            settings=PriceTrackingSettings(drop_alert_percent=3),
        )
        await products.save(CacheEntryFactory.tracked(id="p1", price=Decimal(100)))

        result = await service.observe_price("p1", Decimal(96), now)

        assert result.alert_triggered is True
        assert result.notified is False


class TestHistory:
    """Tests for history queries and cleanup."""

    @pytest.mark.asyncio
    async def test_history_newest_first_with_limit(
        self,
        price_tracking_service: PriceTrackingService,
        price_history: PriceHistoryRepository,
        now: datetime,
    ) -> None:
        """Should return the newest observations first."""
        for hours, price in [(3, 100), (2, 90), (1, 95)]:
            await price_history.append(
                PriceObservationFactory.build(
                    product_id="p1", price=Decimal(price), timestamp=now - timedelta(hours=hours)
                )
            )

        history = await price_tracking_service.get_price_history("p1", limit=2)

        assert [o.price for o in history] == [Decimal(95), Decimal(90)]

    @pytest.mark.asyncio
    async def test_history_in_range(
        self,
        price_tracking_service: PriceTrackingService,
        price_history: PriceHistoryRepository,
        now: datetime,
    ) -> None:
        """Should return observations inside the inclusive range, oldest first."""
        for days in (10, 5, 1):
            await price_history.append(
                PriceObservationFactory.build(
                    product_id="p1", timestamp=now - timedelta(days=days)
                )
            )

        in_range = await price_tracking_service.get_price_history_in_range(
            "p1", now - timedelta(days=5), now
        )

        assert [o.timestamp for o in in_range] == [
            now - timedelta(days=5),
            now - timedelta(days=1),
        ]

    @pytest.mark.asyncio
    async def test_price_changes_between_observations(
        self,
        price_tracking_service: PriceTrackingService,
        price_history: PriceHistoryRepository,
        now: datetime,
    ) -> None:
        """Should compute one change per consecutive pair."""
        for hours, price in [(3, 100), (2, 90), (1, 99)]:
            await price_history.append(
                PriceObservationFactory.build(
                    product_id="p1", price=Decimal(price), timestamp=now - timedelta(hours=hours)
                )
            )

        changes = await price_tracking_service.get_price_changes("p1")

        assert [c.direction for c in changes] == [PriceDirection.DOWN, PriceDirection.UP]

    @pytest.mark.asyncio
    async def test_clean_old_history(
        self,
        price_tracking_service: PriceTrackingService,
        price_history: PriceHistoryRepository,
        now: datetime,
    ) -> None:
        """Should prune observations older than the retention window."""
        await price_history.append(
            PriceObservationFactory.build(product_id="p1", timestamp=now - timedelta(days=120))
        )
        await price_history.append(
            PriceObservationFactory.build(product_id="p1", timestamp=now - timedelta(days=10))
        )

        assert await price_tracking_service.clean_old_history(now=now) == 1
        assert await price_tracking_service.clean_old_history(now=now) == 0
        assert len(await price_history.get_all_for_product("p1")) == 1
