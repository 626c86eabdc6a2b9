"""In-process feed driven by explicit calls."""

from __future__ import annotations

from threading import Lock
from typing import Any, List

from feeds.base import ErrorHandler, FeedSource, FeedSubscription, ValueHandler


class ManualFeed(FeedSource):
    """Feed whose events are pushed by the embedding code."""

    name = "manual"

    def __init__(self) -> None:
        self._subscriptions: List[FeedSubscription] = []
        self._lock = Lock()

    def subscribe(self, on_value: ValueHandler, on_error: ErrorHandler) -> FeedSubscription:
        subscription = FeedSubscription(on_value, on_error, name=self.name)
        subscription.set_release(lambda: self._remove(subscription))
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def push(self, value: Any) -> int:
        """Deliver ``value`` to every active subscriber; returns the delivery count."""
        return sum(1 for subscription in self._active() if subscription.deliver_value(value))

    def fail(self, error: BaseException) -> int:
        return sum(1 for subscription in self._active() if subscription.deliver_error(error))

    def _active(self) -> List[FeedSubscription]:
        with self._lock:
            return list(self._subscriptions)

    def _remove(self, subscription: FeedSubscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
