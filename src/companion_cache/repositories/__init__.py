"""Repositories mapping entity kinds onto the injected entry store."""

from companion_cache.repositories.interactions import InteractionRepository
from companion_cache.repositories.orders import OrderRepository
from companion_cache.repositories.preferences import PreferencesRepository
from companion_cache.repositories.price_history import PriceHistoryRepository
from companion_cache.repositories.products import ProductRepository


__all__ = [
    "InteractionRepository",
    "OrderRepository",
    "PreferencesRepository",
    "PriceHistoryRepository",
    "ProductRepository",
]
