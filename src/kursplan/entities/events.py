"""Change notification for store observers."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from uuid import uuid4

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


@dataclass
class Subscriber:
    """A registered change listener."""

    id: str
    callback: Listener

    @classmethod
    def create(cls, callback: Listener) -> Subscriber:
        """Create a new subscriber."""
        return cls(id=str(uuid4()), callback=callback)


@dataclass
class EventManager:
    """Manager for store change notifications.

    Listeners are zero-argument callables, invoked in subscription order after
    every committed mutation.
    """

    _subscribers: dict[str, Subscriber] = field(default_factory=dict)

    def subscribe(self, callback: Listener) -> str:
        """Subscribe a listener.

        Args:
            callback: Zero-argument callable run after each mutation.

        Returns:
            Subscriber ID used to unsubscribe.
        """
        subscriber = Subscriber.create(callback)
        self._subscribers[subscriber.id] = subscriber
        return subscriber.id

    def unsubscribe(self, subscriber_id: str) -> None:
        """Unsubscribe a listener.

        Args:
            subscriber_id: ID returned by subscribe.
        """
        self._subscribers.pop(subscriber_id, None)

    def notify(self) -> None:
        """Run every listener.

        A failing listener is logged and skipped; the mutation it reacts to
        is already committed and still has to reach the backend.
        """
        for subscriber in list(self._subscribers.values()):
            try:
                subscriber.callback()
            except Exception:
                logger.exception("Store listener %s failed", subscriber.id)

    @property
    def subscriber_count(self) -> int:
        """Get the number of active subscribers."""
        return len(self._subscribers)

    def clear(self) -> None:
        """Drop all subscribers."""
        self._subscribers.clear()
        logger.debug("All store subscribers removed")
