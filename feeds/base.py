"""Push-feed contract shared by every data source."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from threading import RLock
from types import TracebackType
from typing import Any, Callable, Optional, Type

logger = logging.getLogger(__name__)

ValueHandler = Callable[[Any], None]
ErrorHandler = Callable[[BaseException], None]
Release = Callable[[], None]


class FeedError(RuntimeError):
    """Raised or reported when a feed can no longer deliver values."""


class FeedConfigurationError(ValueError):
    """Raised when feed settings cannot produce a usable source."""


class FeedSubscription:
    """Owned registration of a value/error handler pair on a feed.

    Deliveries are serialized, so handlers never run concurrently for one
    subscription. Once :meth:`unsubscribe` returns, no handler is invoked
    again and the feed's release hook has run exactly once.
    """

    def __init__(
        self,
        on_value: ValueHandler,
        on_error: ErrorHandler,
        release: Optional[Release] = None,
        name: str = "feed",
    ) -> None:
        self.name = name
        self._on_value = on_value
        self._on_error = on_error
        self._release = release
        self._lock = RLock()
        self._active = True

    @property
    def active(self) -> bool:
        with self._lock:
            return self._active

    def set_release(self, release: Release) -> None:
        with self._lock:
            self._release = release

    def deliver_value(self, value: Any) -> bool:
        with self._lock:
            if not self._active:
                return False
            self._on_value(value)
            return True

    def deliver_error(self, error: BaseException) -> bool:
        with self._lock:
            if not self._active:
                return False
            self._on_error(error)
            return True

    def unsubscribe(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
            release, self._release = self._release, None

        logger.info("Unsubscribed from feed", extra={"feed": self.name})
        if release is not None:
            release()

    def __enter__(self) -> "FeedSubscription":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        self.unsubscribe()


class FeedSource(ABC):
    """A push-capable source of raw tank records."""

    name = "feed"

    @abstractmethod
    def subscribe(self, on_value: ValueHandler, on_error: ErrorHandler) -> FeedSubscription:
        """Register handlers and start delivery; returns the owned handle."""
