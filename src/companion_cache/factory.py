"""Factory wiring an entry store into repositories and services.

This module provides the create_services factory function that:
- Selects the entry store from settings unless one is passed in
- Builds every repository over that single store
- Builds the services with their configured thresholds
- Shares one change notifier between all repositories
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from companion_cache.core.config import Settings, get_settings
from companion_cache.repositories import (
    InteractionRepository,
    OrderRepository,
    PreferencesRepository,
    PriceHistoryRepository,
    ProductRepository,
)
from companion_cache.services import (
    CacheService,
    InteractionLogService,
    PriceTrackingService,
)
from companion_cache.store.changes import ChangeNotifier
from companion_cache.store.connection import create_store


if TYPE_CHECKING:
    from companion_cache.services.price_tracking import PriceAlertNotifier
    from companion_cache.store.protocol import EntryStore


@dataclass
class Services:
    """Repositories and services sharing one store and change notifier."""

    store: EntryStore
    changes: ChangeNotifier
    products: ProductRepository
    price_history: PriceHistoryRepository
    interactions_repository: InteractionRepository
    orders: OrderRepository
    preferences: PreferencesRepository
    interactions: InteractionLogService
    cache: CacheService
    price_tracking: PriceTrackingService
    settings: Settings = field(repr=False)


def create_services(
    settings: Settings | None = None,
    store: EntryStore | None = None,
    *,
    notifier: PriceAlertNotifier | None = None,
    changes: ChangeNotifier | None = None,
) -> Services:
    """Create the full service graph.

    Args:
        settings: Optional settings override. If not provided, uses get_settings().
        store: Entry store to use. Built from ``settings.store`` when omitted.
        notifier: Price-drop alert callback handed to price tracking.
        changes: Change notifier; a fresh one is created when omitted.

    Returns:
        Wired ``Services``.
    """
    if settings is None:
        settings = get_settings()
    if store is None:
        store = create_store(settings)
    if changes is None:
        changes = ChangeNotifier()

    products = ProductRepository(store, changes)
    price_history = PriceHistoryRepository(store, changes)
    interactions_repository = InteractionRepository(store, changes)
    orders = OrderRepository(store, changes)
    preferences = PreferencesRepository(store, changes)

    interactions = InteractionLogService(
        interactions_repository, settings.interactions
    )
    cache = CacheService(products, interactions, settings.cache, settings.scoring)
    price_tracking = PriceTrackingService(
        products,
        price_history,
        preferences=preferences,
        interactions=interactions,
        notifier=notifier,
        settings=settings.price_tracking,
    )

    return Services(
        store=store,
        changes=changes,
        products=products,
        price_history=price_history,
        interactions_repository=interactions_repository,
        orders=orders,
        preferences=preferences,
        interactions=interactions,
        cache=cache,
        price_tracking=price_tracking,
        settings=settings,
    )
