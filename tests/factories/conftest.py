"""Factory configuration and exports.

This module exports all factories for convenient importing in tests.
"""

from tests.factories.interactions import InteractionEventFactory
from tests.factories.orders import OrderFactory
from tests.factories.prices import PriceObservationFactory
from tests.factories.products import CacheEntryFactory


__all__ = [
    "CacheEntryFactory",
    "InteractionEventFactory",
    "OrderFactory",
    "PriceObservationFactory",
]
