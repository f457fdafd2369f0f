"""User preferences repository for the single implicit user."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from companion_cache.repositories.base import DocumentRepository
from companion_cache.schemas.enums import EntityKind, Theme
from companion_cache.schemas.preferences import DEFAULT_USER_ID, UserPreferences


if TYPE_CHECKING:
    from companion_cache.store.changes import ChangeNotifier
    from companion_cache.store.protocol import EntryStore


class PreferencesRepository(DocumentRepository[UserPreferences]):
    """Repository for ``UserPreferences``.

    Updates go through load-modify-save so that defaults are materialised
    the first time anything is changed.
    """

    kind = EntityKind.PREFERENCES
    model = UserPreferences

    def __init__(
        self,
        store: EntryStore,
        notifier: ChangeNotifier | None = None,
        *,
        user_id: str = DEFAULT_USER_ID,
    ) -> None:
        super().__init__(store, notifier)
        self._user_id = user_id

    async def get(self) -> UserPreferences:
        """Stored preferences, or defaults when none were saved yet."""
        stored = await self._load(self._user_id)
        return stored or UserPreferences(user_id=self._user_id)

    async def save(self, preferences: UserPreferences) -> None:
        preferences = preferences.model_copy(update={"user_id": self._user_id})
        await self._store.insert_or_replace(
            self.kind, self._user_id, self._encode(preferences)
        )
        self._changed(self._user_id)

    async def update_theme(self, theme: Theme) -> UserPreferences:
        return await self._apply(theme=theme)

    async def update_notification_preferences(
        self,
        *,
        price_drops: bool,
        deals: bool,
        shipping: bool,
        recommendations: bool,
        marketing: bool,
    ) -> UserPreferences:
        return await self._apply(
            enable_price_drop_notifications=price_drops,
            enable_deal_notifications=deals,
            enable_shipping_notifications=shipping,
            enable_recommendation_notifications=recommendations,
            enable_marketing_notifications=marketing,
        )

    async def _apply(self, **changes: object) -> UserPreferences:
        current = await self.get()
        updated = UserPreferences.model_validate(
            {
                **current.model_dump(by_alias=False),
                **changes,
                "last_updated_at": datetime.now(UTC),
            }
        )
        await self.save(updated)
        return updated
