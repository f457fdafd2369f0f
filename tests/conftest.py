"""Shared test fixtures for the companion cache tests.

This module provides pytest fixtures used across test modules: a fixed
clock, an in-memory entry store, repositories over it and wired services.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from datetime import UTC, datetime

import pytest


# Settings are read at import time by the worker module
os.environ.setdefault("APP_ENV", "test")

from companion_cache.core.config import Settings, get_settings  # noqa: E402
from companion_cache.repositories import (  # noqa: E402
    InteractionRepository,
    OrderRepository,
    PreferencesRepository,
    PriceHistoryRepository,
    ProductRepository,
)
from companion_cache.services import (  # noqa: E402
    CacheService,
    InteractionLogService,
    PriceTrackingService,
)
from companion_cache.store import ChangeNotifier, InMemoryEntryStore  # noqa: E402


FIXED_NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    """A fixed, timezone-aware 'current' time."""
    return FIXED_NOW


@pytest.fixture
def test_settings() -> Iterator[Settings]:
    """Settings loaded with the test environment YAML."""
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


# =============================================================================
# Store & Repositories
# =============================================================================


@pytest.fixture
def store() -> InMemoryEntryStore:
    return InMemoryEntryStore()


@pytest.fixture
def changes() -> ChangeNotifier:
    return ChangeNotifier()


@pytest.fixture
def products(store: InMemoryEntryStore, changes: ChangeNotifier) -> ProductRepository:
    return ProductRepository(store, changes)


@pytest.fixture
def price_history(
    store: InMemoryEntryStore, changes: ChangeNotifier
) -> PriceHistoryRepository:
    return PriceHistoryRepository(store, changes)


@pytest.fixture
def interactions_repository(
    store: InMemoryEntryStore, changes: ChangeNotifier
) -> InteractionRepository:
    return InteractionRepository(store, changes)


@pytest.fixture
def orders(store: InMemoryEntryStore, changes: ChangeNotifier) -> OrderRepository:
    return OrderRepository(store, changes)


@pytest.fixture
def preferences(
    store: InMemoryEntryStore, changes: ChangeNotifier
) -> PreferencesRepository:
    return PreferencesRepository(store, changes)


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def interaction_service(
    interactions_repository: InteractionRepository,
) -> InteractionLogService:
    return InteractionLogService(interactions_repository)


@pytest.fixture
def cache_service(
    products: ProductRepository,
    interaction_service: InteractionLogService,
) -> CacheService:
    return CacheService(products, interaction_service)


@pytest.fixture
def price_tracking_service(
    products: ProductRepository,
    price_history: PriceHistoryRepository,
    preferences: PreferencesRepository,
    interaction_service: InteractionLogService,
) -> PriceTrackingService:
    """Price tracking service without a notifier."""
    return PriceTrackingService(
        products,
        price_history,
        preferences=preferences,
        interactions=interaction_service,
    )
