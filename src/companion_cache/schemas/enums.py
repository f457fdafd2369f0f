"""Enumeration types shared by the companion cache schemas."""

from __future__ import annotations

from enum import StrEnum


class EntityKind(StrEnum):
    """Entity collections held by the entry store."""

    PRODUCTS = "products"
    PRICE_HISTORY = "price_history"
    ORDERS = "orders"
    PREFERENCES = "preferences"
    INTERACTIONS = "interactions"


class PriceDirection(StrEnum):
    """Direction of a price change relative to the previous observation."""

    UP = "UP"
    DOWN = "DOWN"
    STABLE = "STABLE"


class InteractionType(StrEnum):
    """Kinds of user interaction recorded in the interaction log."""

    SCREEN_VIEW = "SCREEN_VIEW"
    PRODUCT_VIEW = "PRODUCT_VIEW"
    PRODUCT_CLICK = "PRODUCT_CLICK"
    ADD_TO_WISHLIST = "ADD_TO_WISHLIST"
    REMOVE_FROM_WISHLIST = "REMOVE_FROM_WISHLIST"
    START_TRACKING = "START_TRACKING"
    STOP_TRACKING = "STOP_TRACKING"
    SHARE_PRODUCT = "SHARE_PRODUCT"
    SEARCH = "SEARCH"
    FILTER_APPLIED = "FILTER_APPLIED"
    SORT_CHANGED = "SORT_CHANGED"
    NOTIFICATION_CLICKED = "NOTIFICATION_CLICKED"
    NOTIFICATION_DISMISSED = "NOTIFICATION_DISMISSED"


class OrderStatus(StrEnum):
    """Fulfilment status of an order."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    IN_TRANSIT = "IN_TRANSIT"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class Theme(StrEnum):
    """UI colour theme."""

    LIGHT = "light"
    DARK = "dark"
    AUTO = "auto"


class Density(StrEnum):
    """UI spacing density."""

    COMPACT = "compact"
    NORMAL = "normal"
    COMFORTABLE = "comfortable"


class Layout(StrEnum):
    """Product list layout."""

    GRID = "grid"
    LIST = "list"
