"""Unit tests for the sliding-window buffer."""

from __future__ import annotations

import random
import threading
from datetime import datetime, timedelta, timezone

import pytest

from models.records import Reading
from services.history import HistoryBuffer

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def _reading(offset_seconds: float, tds: float = 300.0) -> Reading:
    return Reading(timestamp=T0 + timedelta(seconds=offset_seconds), tds=tds, temperature=22.0)


def test_readings_older_than_window_are_evicted() -> None:
    buffer = HistoryBuffer()
    first, second, third = _reading(0), _reading(30), _reading(61)

    buffer.append(first, now=first.timestamp)
    buffer.append(second, now=second.timestamp)
    evicted = buffer.append(third, now=third.timestamp)

    assert evicted == 1
    assert buffer.snapshot() == [second, third]


def test_reading_exactly_at_window_edge_is_retained() -> None:
    buffer = HistoryBuffer()
    edge = _reading(0)
    buffer.append(edge, now=T0)

    buffer.append(_reading(60), now=T0 + timedelta(milliseconds=60_000))
    assert buffer.snapshot()[0] == edge

    buffer.append(_reading(60.001), now=T0 + timedelta(milliseconds=60_001))
    assert edge not in buffer.snapshot()


def test_eviction_uses_evaluation_time_not_reading_time() -> None:
    buffer = HistoryBuffer()
    stale = _reading(-120)

    evicted = buffer.append(stale, now=T0)

    assert evicted == 1
    assert len(buffer) == 0

    future = _reading(3600)
    buffer.append(future, now=T0)
    buffer.append(_reading(90), now=T0 + timedelta(seconds=90))
    assert future in buffer.snapshot()


def test_arrival_order_preserved_with_unsorted_timestamps() -> None:
    buffer = HistoryBuffer()
    readings = [_reading(10, tds=1), _reading(5, tds=2), _reading(20, tds=3), _reading(15, tds=4)]

    for reading in readings:
        buffer.append(reading, now=T0 + timedelta(seconds=20))

    assert [reading.tds for reading in buffer.snapshot()] == [1, 2, 3, 4]


def test_random_sequences_respect_window_and_order() -> None:
    rng = random.Random(7)
    buffer = HistoryBuffer()
    now = T0
    appended: list[Reading] = []

    for index in range(300):
        now += timedelta(seconds=rng.uniform(0, 5))
        reading = Reading(
            timestamp=now + timedelta(seconds=rng.uniform(-3, 1)),
            tds=float(index),
            temperature=20.0,
        )
        appended.append(reading)
        buffer.append(reading, now=now)

        retained = buffer.snapshot()
        assert all(now - item.timestamp <= timedelta(seconds=60) for item in retained)
        positions = [appended.index(item) for item in retained]
        assert positions == sorted(positions)


def test_latest_and_window_validation() -> None:
    buffer = HistoryBuffer(window=timedelta(seconds=5))
    assert buffer.latest is None

    reading = _reading(0)
    buffer.append(reading, now=T0)
    assert buffer.latest == reading

    with pytest.raises(ValueError):
        HistoryBuffer(window=timedelta(0))


def test_concurrent_appends_are_atomic() -> None:
    buffer = HistoryBuffer()
    barrier = threading.Barrier(4)

    def worker(offset: int) -> None:
        barrier.wait(timeout=1.0)
        for index in range(250):
            buffer.append(_reading(0, tds=float(offset * 1000 + index)), now=T0)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert len(buffer) == 1000
