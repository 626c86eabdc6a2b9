"""Threshold classification and chart derivation for tank readings."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from enum import Enum
from typing import Iterable, List, Optional

from models.records import Reading

TDS_SAFE_MAX = 500.0  # mg/L
TEMP_SAFE_MIN = 15.0  # °C
TEMP_SAFE_MAX = 30.0  # °C

UNKNOWN_TIME = "—"
WAITING_FOR_DATA = "waiting for data"
MIN_CHART_POINTS = 2
UNKNOWN_GAUGE_PERCENT = 10.0


class Metric(str, Enum):
    tds = "tds"
    temperature = "temperature"


class MetricStatus(str, Enum):
    """Safety labels exposed to the rendering surface."""

    unknown = "unknown"
    safe = "safe"
    high = "high"
    out_of_range = "out-of-range"


@dataclass(frozen=True)
class Thresholds:
    tds_safe_max: float = TDS_SAFE_MAX
    temp_safe_min: float = TEMP_SAFE_MIN
    temp_safe_max: float = TEMP_SAFE_MAX

    def __post_init__(self) -> None:
        if self.temp_safe_min >= self.temp_safe_max:
            raise ValueError("Temperature safe band must have min < max.")
        if self.tds_safe_max <= 0:
            raise ValueError("TDS safe ceiling must be positive.")


DEFAULT_THRESHOLDS = Thresholds()


@dataclass
class ChartSeries:
    """Parallel chart columns in arrival order."""

    labels: List[str] = field(default_factory=list)
    tds: List[float] = field(default_factory=list)
    temperature: List[float] = field(default_factory=list)

    @property
    def ready(self) -> bool:
        return len(self.labels) >= MIN_CHART_POINTS


def tds_status(tds: Optional[float], thresholds: Thresholds = DEFAULT_THRESHOLDS) -> MetricStatus:
    if tds is None:
        return MetricStatus.unknown
    if tds <= thresholds.tds_safe_max:
        return MetricStatus.safe
    return MetricStatus.high


def temperature_status(
    temperature: Optional[float], thresholds: Thresholds = DEFAULT_THRESHOLDS
) -> MetricStatus:
    if temperature is None:
        return MetricStatus.unknown
    if thresholds.temp_safe_min <= temperature <= thresholds.temp_safe_max:
        return MetricStatus.safe
    return MetricStatus.out_of_range


def trend_label(
    metric: Metric,
    value: Optional[float],
    status: MetricStatus,
    points: int,
) -> str:
    """Short trend caption shown under each status card."""
    if points < MIN_CHART_POINTS or value is None:
        return WAITING_FOR_DATA
    if metric is Metric.tds:
        return "stable" if status is MetricStatus.safe else "needs attention"
    return status.value


def gauge_percent(
    metric: Metric,
    value: Optional[float],
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> float:
    """Fill percentage of the card's bar, clamped to [0, 100]."""
    if value is None:
        return UNKNOWN_GAUGE_PERCENT
    if metric is Metric.tds:
        percent = value / thresholds.tds_safe_max * 100
    else:
        span = thresholds.temp_safe_max - thresholds.temp_safe_min
        percent = (value - thresholds.temp_safe_min) / span * 100
    return max(0.0, min(percent, 100.0))


def format_time(timestamp: Optional[datetime], tz: Optional[tzinfo] = None) -> str:
    if timestamp is None:
        return UNKNOWN_TIME
    return timestamp.astimezone(tz).strftime("%H:%M:%S")


def chart_series(readings: Iterable[Reading], tz: Optional[tzinfo] = None) -> ChartSeries:
    series = ChartSeries()
    for reading in readings:
        series.labels.append(format_time(reading.timestamp, tz))
        series.tds.append(reading.tds)
        series.temperature.append(reading.temperature)
    return series
