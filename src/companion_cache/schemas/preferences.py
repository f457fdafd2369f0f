"""User preferences schema (single implicit user)."""

from __future__ import annotations

from datetime import UTC, datetime, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator

from companion_cache.schemas.base import DomainModel, UtcDatetime, coerce_now
from companion_cache.schemas.enums import Density, Layout, Theme


DEFAULT_USER_ID = "default"


class UserPreferences(DomainModel):
    """Display, notification and privacy preferences."""

    user_id: str = DEFAULT_USER_ID
    theme: Theme = Theme.LIGHT
    font_size: int = Field(default=14, ge=8, le=48)
    density: Density = Density.NORMAL
    layout: Layout = Layout.GRID
    language: str = "en"
    currency: str = "USD"

    # Notification preferences
    enable_price_drop_notifications: bool = True
    enable_deal_notifications: bool = True
    enable_shipping_notifications: bool = True
    enable_recommendation_notifications: bool = False
    enable_marketing_notifications: bool = False

    # Do Not Disturb schedule, hours [start, end) in time_zone
    dnd_enabled: bool = False
    dnd_start_hour: int = Field(default=22, ge=0, le=23)
    dnd_end_hour: int = Field(default=8, ge=0, le=23)
    time_zone: str = "UTC"

    # Privacy settings
    enable_analytics: bool = True
    enable_personalization: bool = True
    share_data_with_cloud: bool = True

    last_updated_at: UtcDatetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("time_zone")
    @classmethod
    def _known_time_zone(cls, value: str) -> str:
        if value != "UTC":
            try:
                ZoneInfo(value)
            except (ZoneInfoNotFoundError, ValueError) as e:
                msg = f"Unknown time zone: {value}"
                raise ValueError(msg) from e
        return value

    def local_zone(self) -> tzinfo:
        return UTC if self.time_zone == "UTC" else ZoneInfo(self.time_zone)

    def is_quiet_hour(self, now: datetime) -> bool:
        """Whether ``now`` falls inside the Do Not Disturb window.

        ``now`` is converted to ``time_zone`` first; naive values are taken
        as UTC. The window may wrap midnight (22 -> 8). Equal start and end
        hours describe an empty window.
        """
        if not self.dnd_enabled:
            return False
        hour = coerce_now(now).astimezone(self.local_zone()).hour
        start, end = self.dnd_start_hour, self.dnd_end_hour
        if start < end:
            return start <= hour < end
        if start > end:
            return hour >= start or hour < end
        return False

    def allows_price_drop_alert(self, now: datetime | None = None) -> bool:
        if not self.enable_price_drop_notifications:
            return False
        return not self.is_quiet_hour(coerce_now(now))
