"""Live tank state: ingestion, connectivity and derived view-state."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from threading import Lock, RLock
from typing import Any, Callable, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.schemas import ChartView, DashboardView, MetricView, SafeRange
from feeds.base import FeedSource, FeedSubscription
from models.records import Reading
from services.classification import (
    DEFAULT_THRESHOLDS,
    Metric,
    Thresholds,
    chart_series,
    format_time,
    gauge_percent,
    tds_status,
    temperature_status,
    trend_label,
)
from services.history import HistoryBuffer
from services.normalizer import normalize_reading
from settings import get_settings

logger = logging.getLogger(__name__)

Listener = Callable[[DashboardView], None]
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TankMonitor:
    """Single owner of the history window and the connectivity flag.

    Feed events are handled one at a time under a lock; each one runs
    normalization, eviction, insertion and listener notification to
    completion before the next is admitted.
    """

    def __init__(
        self,
        buffer: Optional[HistoryBuffer] = None,
        thresholds: Thresholds = DEFAULT_THRESHOLDS,
        clock: Clock = utcnow,
        display_tz: Optional[tzinfo] = None,
    ) -> None:
        self.buffer = buffer if buffer is not None else HistoryBuffer()
        self.thresholds = thresholds
        self.display_tz = display_tz
        self._clock = clock
        self._latest: Optional[Reading] = None
        self._online = False
        self._last_error: Optional[str] = None
        self._lock = RLock()
        self._listeners: List[Listener] = []
        self._listeners_lock = Lock()

    @property
    def online(self) -> bool:
        with self._lock:
            return self._online

    @property
    def latest(self) -> Optional[Reading]:
        with self._lock:
            return self._latest

    def attach(self, feed: FeedSource) -> FeedSubscription:
        """Subscribe this monitor's handlers to ``feed``."""
        return feed.subscribe(self.handle_value, self.handle_error)

    def handle_value(self, raw: Any) -> Optional[Reading]:
        """Ingest one raw feed record; an absent record marks the tank offline."""
        with self._lock:
            now = self._clock()
            reading = normalize_reading(raw, now)
            if reading is None:
                self._go_offline("no value at feed location")
            else:
                if not self._online:
                    logger.info(
                        "Tank feed online",
                        extra={"tds": reading.tds, "temperature": reading.temperature},
                    )
                self._latest = reading
                self._online = True
                self._last_error = None
                evicted = self.buffer.append(reading, now)
                logger.debug(
                    "Reading buffered",
                    extra={
                        "tds": reading.tds,
                        "temperature": reading.temperature,
                        "buffer_size": len(self.buffer),
                        "evicted": evicted,
                    },
                )
            self._notify(self._build_view())
            return reading

    def handle_error(self, error: BaseException) -> None:
        """Record a subscription failure; the history window is left as is."""
        with self._lock:
            self._last_error = str(error) or error.__class__.__name__
            self._go_offline(self._last_error)
            self._notify(self._build_view())

    def snapshot(self) -> DashboardView:
        with self._lock:
            return self._build_view()

    def readings(self) -> List[Reading]:
        return self.buffer.snapshot()

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a callable that removes it."""
        with self._listeners_lock:
            self._listeners.append(listener)

        def remove() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return remove

    def _go_offline(self, reason: str) -> None:
        if self._online:
            logger.warning("Tank feed offline", extra={"reason": reason})
        self._online = False

    def _notify(self, view: DashboardView) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(view)
            except Exception:
                logger.exception("Dashboard listener failed")

    def _build_view(self) -> DashboardView:
        points = self.buffer.snapshot()
        latest = self._latest
        tds = latest.tds if latest else None
        temperature = latest.temperature if latest else None
        thresholds = self.thresholds

        tds_state = tds_status(tds, thresholds)
        temperature_state = temperature_status(temperature, thresholds)
        series = chart_series(points, self.display_tz)

        return DashboardView(
            online=self._online,
            last_updated=latest.timestamp if latest else None,
            last_updated_display=format_time(latest.timestamp if latest else None, self.display_tz),
            last_error=self._last_error,
            tds=MetricView(
                name="TDS",
                unit="mg/L",
                value=tds,
                status=tds_state,
                trend=trend_label(Metric.tds, tds, tds_state, len(points)),
                gauge_percent=gauge_percent(Metric.tds, tds, thresholds),
                safe_range=SafeRange(minimum=0, maximum=thresholds.tds_safe_max),
            ),
            temperature=MetricView(
                name="Temperature",
                unit="°C",
                value=temperature,
                status=temperature_state,
                trend=trend_label(Metric.temperature, temperature, temperature_state, len(points)),
                gauge_percent=gauge_percent(Metric.temperature, temperature, thresholds),
                safe_range=SafeRange(
                    minimum=thresholds.temp_safe_min, maximum=thresholds.temp_safe_max
                ),
            ),
            chart=ChartView(
                ready=series.ready,
                labels=series.labels,
                tds=series.tds,
                temperature=series.temperature,
            ),
            window_seconds=self.buffer.window.total_seconds(),
            point_count=len(points),
        )


def _resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown display timezone, using local time", extra={"reason": name})
        return None


@lru_cache
def build_default_monitor() -> TankMonitor:
    """Factory that wires the monitor from environment settings."""
    settings = get_settings()
    thresholds = Thresholds(
        tds_safe_max=settings.tds_safe_max,
        temp_safe_min=settings.temp_safe_min,
        temp_safe_max=settings.temp_safe_max,
    )
    return TankMonitor(
        buffer=HistoryBuffer(timedelta(seconds=settings.window_seconds)),
        thresholds=thresholds,
        display_tz=_resolve_timezone(settings.display_timezone),
    )
