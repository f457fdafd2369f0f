"""Price tracking and price-drop alert module."""

from companion_cache.services.price_tracking.policy import (
    compute_price_change,
    record_price_observation,
    should_alert_on_price_drop,
    start_tracking,
    stop_tracking,
)
from companion_cache.services.price_tracking.service import (
    PriceAlertNotifier,
    PriceTrackingService,
)


__all__ = [
    "PriceAlertNotifier",
    "PriceTrackingService",
    "compute_price_change",
    "record_price_observation",
    "should_alert_on_price_drop",
    "start_tracking",
    "stop_tracking",
]
