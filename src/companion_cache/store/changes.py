"""Change notification channel.

Repositories publish which keys of which entity kind they wrote; the UI
layer subscribes and decides what to re-query. Queries themselves stay
plain synchronous-style calls.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from companion_cache.observability.logging import get_logger


if TYPE_CHECKING:
    from companion_cache.schemas.enums import EntityKind

logger = get_logger(__name__)

ChangeListener = Callable[["EntityKind", tuple[str, ...]], None]


class ChangeNotifier:
    """Fan-out of ``(kind, keys)`` change events to subscribed listeners."""

    def __init__(self) -> None:
        self._listeners: list[ChangeListener] = []

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register ``listener`` and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, kind: EntityKind, keys: Iterable[str]) -> None:
        """Notify every listener. A failing listener does not stop the others."""
        changed = tuple(keys)
        if not changed:
            return
        for listener in list(self._listeners):
            try:
                listener(kind, changed)
            except Exception:
                logger.exception(
                    "Change listener failed", kind=str(kind), keys=len(changed)
                )
