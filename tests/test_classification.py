from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from models.records import Reading
from services.classification import (
    WAITING_FOR_DATA,
    Metric,
    MetricStatus,
    Thresholds,
    chart_series,
    format_time,
    gauge_percent,
    tds_status,
    temperature_status,
    trend_label,
)


@pytest.mark.parametrize(
    "tds, expected",
    [
        (None, MetricStatus.unknown),
        (0, MetricStatus.safe),
        (500, MetricStatus.safe),
        (500.1, MetricStatus.high),
        (650, MetricStatus.high),
    ],
)
def test_tds_status(tds, expected) -> None:
    assert tds_status(tds) is expected


@pytest.mark.parametrize(
    "temperature, expected",
    [
        (None, MetricStatus.unknown),
        (15, MetricStatus.safe),
        (22, MetricStatus.safe),
        (30, MetricStatus.safe),
        (14.999, MetricStatus.out_of_range),
        (30.001, MetricStatus.out_of_range),
        (35, MetricStatus.out_of_range),
    ],
)
def test_temperature_status(temperature, expected) -> None:
    assert temperature_status(temperature) is expected


def test_out_of_range_label_is_hyphenated() -> None:
    assert MetricStatus.out_of_range.value == "out-of-range"


def test_custom_thresholds() -> None:
    thresholds = Thresholds(tds_safe_max=100, temp_safe_min=0, temp_safe_max=10)

    assert tds_status(150, thresholds) is MetricStatus.high
    assert temperature_status(5, thresholds) is MetricStatus.safe

    with pytest.raises(ValueError):
        Thresholds(temp_safe_min=30, temp_safe_max=15)


def test_trend_labels() -> None:
    assert trend_label(Metric.tds, 300, MetricStatus.safe, points=1) == WAITING_FOR_DATA
    assert trend_label(Metric.tds, None, MetricStatus.unknown, points=5) == WAITING_FOR_DATA
    assert trend_label(Metric.tds, 300, MetricStatus.safe, points=2) == "stable"
    assert trend_label(Metric.tds, 650, MetricStatus.high, points=2) == "needs attention"
    assert trend_label(Metric.temperature, 22, MetricStatus.safe, points=3) == "safe"
    assert (
        trend_label(Metric.temperature, 35, MetricStatus.out_of_range, points=3)
        == "out-of-range"
    )


def test_gauge_percent_is_clamped() -> None:
    assert gauge_percent(Metric.tds, None) == 10.0
    assert gauge_percent(Metric.tds, 250) == 50.0
    assert gauge_percent(Metric.tds, 900) == 100.0
    assert gauge_percent(Metric.temperature, 22.5) == 50.0
    assert gauge_percent(Metric.temperature, 5) == 0.0


def test_chart_series_in_arrival_order() -> None:
    base = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
    readings = [
        Reading(timestamp=base + timedelta(seconds=5), tds=310, temperature=21.5),
        Reading(timestamp=base, tds=305, temperature=21.0),
    ]

    series = chart_series(readings, tz=timezone.utc)

    assert series.labels == ["12:00:05", "12:00:00"]
    assert series.tds == [310, 305]
    assert series.temperature == [21.5, 21.0]
    assert series.ready is True
    assert chart_series(readings[:1], tz=timezone.utc).ready is False


def test_format_time_placeholder() -> None:
    assert format_time(None) == "—"
    assert format_time(datetime(2024, 1, 1, 8, 5, 9, tzinfo=timezone.utc), timezone.utc) == "08:05:09"
