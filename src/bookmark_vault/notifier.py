"""Publish/subscribe channel between components that do not know each other.

Delivery is synchronous and in registration order. A publish delivers to
the subscribers present when it started; callbacks added while delivering
are only reached by later publishes.
"""

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

TAG_UPDATED = "tag-updated"
TAG_DELETED = "tag-deleted"  # payload: the deleted tag's name
BOOKMARKS_CHANGED = "bookmarks-changed"

Callback = Callable[[Any], None]


class Subscription:
    """Handle returned by Notifier.subscribe; call it or cancel() to unsubscribe."""

    def __init__(self, notifier: "Notifier", event: str, callback: Callback):
        self._notifier = notifier
        self.event = event
        self.callback = callback
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self._notifier._remove(self)

    def __call__(self) -> None:
        self.cancel()


class Notifier:
    def __init__(self):
        self._subscriptions: dict[str, list[Subscription]] = {}

    def subscribe(self, event: str, callback: Callback) -> Subscription:
        sub = Subscription(self, event, callback)
        self._subscriptions.setdefault(event, []).append(sub)
        return sub

    def unsubscribe(self, event: str, callback: Callback) -> None:
        """Remove every subscription of callback to event."""
        for sub in list(self._subscriptions.get(event, [])):
            if sub.callback == callback:
                sub.cancel()

    def publish(self, event: str, payload: Any = None) -> int:
        """Deliver payload to current subscribers. Returns how many were called."""
        delivered = 0
        for sub in list(self._subscriptions.get(event, [])):
            # Cancelled by an earlier subscriber during this publish
            if not sub.active:
                continue
            try:
                sub.callback(payload)
            except Exception:
                logger.exception("Subscriber to %r failed", event)
            delivered += 1
        logger.debug("Published %r to %d subscriber(s)", event, delivered)
        return delivered

    def subscriber_count(self, event: str) -> int:
        return len(self._subscriptions.get(event, []))

    def _remove(self, sub: Subscription) -> None:
        subs = self._subscriptions.get(sub.event, [])
        if sub in subs:
            subs.remove(sub)
        if not subs:
            self._subscriptions.pop(sub.event, None)
