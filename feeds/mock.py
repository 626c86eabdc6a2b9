"""Demo feed producing a plausible random walk of tank readings."""

from __future__ import annotations

import logging
import random
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from feeds.base import ErrorHandler, FeedSource, FeedSubscription, ValueHandler

logger = logging.getLogger(__name__)

BASE_TDS = 320.0
BASE_TEMPERATURE = 22.0


def mock_payload(last: Optional[Dict[str, Any]] = None, rng: Optional[random.Random] = None) -> Dict[str, Any]:
    """Generate a record shaped like the tank node's ``latest`` entry."""
    rng = rng or random.Random()

    def jitt(value: float, spread: float) -> float:
        return value + rng.uniform(-spread, spread)

    if last:
        tds = max(0.0, jitt(float(last.get("tds", BASE_TDS)), 12.0))
        temperature = jitt(float(last.get("temperature", BASE_TEMPERATURE)), 0.3)
    else:
        tds = jitt(BASE_TDS, 20.0)
        temperature = jitt(BASE_TEMPERATURE, 1.0)

    return {
        "tds": round(tds, 1),
        "temperature": round(temperature, 2),
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
    }


class MockFeed(FeedSource):
    """Emits one generated record immediately and then every ``interval`` seconds."""

    name = "mock"

    def __init__(
        self,
        interval: float = 2.0,
        seed: Optional[int] = None,
        payload_factory: Callable[..., Dict[str, Any]] = mock_payload,
    ) -> None:
        if interval <= 0:
            raise ValueError("Mock feed interval must be positive.")
        self.interval = interval
        self._rng = random.Random(seed)
        self._payload_factory = payload_factory

    def subscribe(self, on_value: ValueHandler, on_error: ErrorHandler) -> FeedSubscription:
        stop = threading.Event()
        subscription = FeedSubscription(on_value, on_error, name=self.name)
        worker = threading.Thread(
            target=self._run,
            args=(subscription, stop),
            name="mock-feed",
            daemon=True,
        )

        def release() -> None:
            stop.set()
            if threading.current_thread() is not worker:
                worker.join(timeout=self.interval + 1.0)

        subscription.set_release(release)
        worker.start()
        logger.info("Subscribed to mock feed", extra={"feed": self.name})
        return subscription

    def _run(self, subscription: FeedSubscription, stop: threading.Event) -> None:
        last: Optional[Dict[str, Any]] = None
        while not stop.is_set():
            try:
                last = self._payload_factory(last, self._rng)
            except Exception as exc:
                logger.exception("Mock payload generation failed", extra={"feed": self.name})
                subscription.deliver_error(exc)
                return
            if not subscription.deliver_value(last):
                return
            if stop.wait(self.interval):
                return
