"""Price tracking constants."""

from typing import Final


DROP_ALERT_PERCENT: Final[float] = 10.0
HISTORY_RETENTION_DAYS: Final[int] = 90
HISTORY_LIMIT: Final[int] = 100

PERCENT_PRECISION: Final[int] = 2
