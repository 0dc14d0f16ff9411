"""
Simple synchronous change feed with explicit subscription handles.
"""

import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

logger_event_bus = logging.getLogger(__name__)

T = TypeVar("T")


class Subscription:
    """
    Handle returned by `subscribe`. Owned by whichever scope subscribed;
    `unsubscribe()` is idempotent.
    """

    def __init__(self, cancel: Callable[[], None]):
        self._cancel: Callable[[], None] | None = cancel

    @property
    def active(self) -> bool:
        return self._cancel is not None

    def unsubscribe(self) -> None:
        if self._cancel is None:
            return
        cancel, self._cancel = self._cancel, None
        cancel()


class ChangeFeed(Generic[T]):
    """Fan-out of published items to subscriber callbacks, in arrival order."""

    def __init__(self, name: str = "feed"):
        self.name = name
        self.subscribers: list[Callable[[T], Any]] = []

    def subscribe(self, callback: Callable[[T], Any]) -> Subscription:
        """Subscribe a callback; returns the handle used to unsubscribe it."""
        if not callable(callback):
            raise TypeError("Callback must be callable.")
        self.subscribers.append(callback)
        logger_event_bus.debug(f"Subscriber added to {self.name} ({len(self.subscribers)} total)")
        return Subscription(lambda: self._remove(callback))

    def _remove(self, callback: Callable[[T], Any]) -> None:
        try:
            self.subscribers.remove(callback)
            logger_event_bus.debug(f"Subscriber removed from {self.name}")
        except ValueError:
            logger_event_bus.warning(f"Subscriber not found on {self.name}")

    def publish(self, item: T) -> int:
        """
        Deliver `item` to every current subscriber. A failing subscriber is
        logged and does not stop delivery to the others.
        Returns the number of subscribers that handled the item.
        """
        delivered = 0
        # Copy in case a callback unsubscribes during delivery
        for callback in list(self.subscribers):
            try:
                callback(item)
                delivered += 1
            except Exception as e:
                logger_event_bus.error(
                    f"Error in subscriber callback on {self.name}: {type(e).__name__}: {e}"
                )
        return delivered

    def __len__(self) -> int:
        return len(self.subscribers)
