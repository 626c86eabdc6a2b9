"""Sliding-window history of recent readings."""

from __future__ import annotations

from datetime import datetime, timedelta
from threading import Lock
from typing import List, Optional

from models.records import Reading

DEFAULT_WINDOW = timedelta(milliseconds=60_000)


class HistoryBuffer:
    """Append-only sequence of readings that keeps only the trailing window.

    Eviction is measured against the evaluation time passed to
    :meth:`append`, not against the newest reading's own timestamp. Payload
    timestamps are not guaranteed to be monotonic, so every element is checked
    on each append instead of trimming from the left.
    """

    def __init__(self, window: timedelta = DEFAULT_WINDOW) -> None:
        if window <= timedelta(0):
            raise ValueError("History window must be positive.")
        self.window = window
        self._readings: List[Reading] = []
        self._lock = Lock()

    def append(self, reading: Reading, now: datetime) -> int:
        """Insert ``reading`` then drop everything older than the window.

        Returns the number of evicted readings. Readings exactly one window
        old are retained.
        """
        with self._lock:
            candidates = [*self._readings, reading]
            retained = [item for item in candidates if now - item.timestamp <= self.window]
            self._readings = retained
            return len(candidates) - len(retained)

    def snapshot(self) -> List[Reading]:
        with self._lock:
            return list(self._readings)

    @property
    def latest(self) -> Optional[Reading]:
        with self._lock:
            return self._readings[-1] if self._readings else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._readings)
