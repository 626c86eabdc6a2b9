from __future__ import annotations

import json
import threading
from typing import Any, List, Tuple

import httpx
import pytest

from feeds.base import FeedError
from feeds.firebase import FirebaseFeed, apply_event, iter_sse, set_at_path

DATABASE_URL = "https://tank-default-rtdb.firebaseio.com"


def _sse(*events: Tuple[str, Any]) -> bytes:
    chunks = [f"event: {name}\ndata: {json.dumps(data)}\n\n" for name, data in events]
    return "".join(chunks).encode("utf-8")


class Collector:
    def __init__(self) -> None:
        self.values: List[Any] = []
        self.errors: List[BaseException] = []
        self.failed = threading.Event()

    def on_value(self, value: Any) -> None:
        self.values.append(value)

    def on_error(self, error: BaseException) -> None:
        self.errors.append(error)
        self.failed.set()


def _run_stream(handler) -> Collector:
    feed = FirebaseFeed(DATABASE_URL, "waterMonitoring/mainTank/latest", transport=httpx.MockTransport(handler))
    collector = Collector()
    subscription = feed.subscribe(collector.on_value, collector.on_error)
    try:
        assert collector.failed.wait(timeout=5), "stream did not finish"
    finally:
        subscription.unsubscribe()
    return collector


def test_iter_sse_groups_events() -> None:
    lines = [
        "event: put",
        'data: {"path": "/", "data": 1}',
        "",
        ": comment",
        "event: keep-alive",
        "data: null",
        "",
    ]

    assert list(iter_sse(lines)) == [
        ("put", '{"path": "/", "data": 1}'),
        ("keep-alive", "null"),
    ]


def test_set_at_path_copies_and_deletes() -> None:
    record = {"tds": 300, "temperature": 22}

    updated = set_at_path(record, "/tds", 320)
    assert updated == {"tds": 320, "temperature": 22}
    assert record["tds"] == 300

    assert set_at_path(updated, "/tds", None) == {"temperature": 22}
    assert set_at_path({"tds": 1}, "/tds", None) is None
    assert set_at_path(record, "/", None) is None


def test_apply_patch_merges_children() -> None:
    record = {"tds": 300, "temperature": 22}

    updated = apply_event(record, "patch", {"path": "/", "data": {"tds": 310, "timestamp": "t"}})

    assert updated == {"tds": 310, "temperature": 22, "timestamp": "t"}
    with pytest.raises(FeedError):
        apply_event(record, "patch", {"path": "/", "data": 5})


def test_stream_delivers_whole_record_per_change() -> None:
    seen_requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_requests.append(request)
        body = _sse(
            ("put", {"path": "/", "data": {"tds": 300, "temperature": 22}}),
            ("keep-alive", None),
            ("patch", {"path": "/", "data": {"tds": 320}}),
            ("put", {"path": "/temperature", "data": 23.5}),
        )
        return httpx.Response(200, content=body, headers={"content-type": "text/event-stream"})

    collector = _run_stream(handler)

    assert collector.values == [
        {"tds": 300, "temperature": 22},
        {"tds": 320, "temperature": 22},
        {"tds": 320, "temperature": 23.5},
    ]
    assert isinstance(collector.errors[0], FeedError)
    assert str(seen_requests[0].url) == f"{DATABASE_URL}/waterMonitoring/mainTank/latest.json"
    assert seen_requests[0].headers["accept"] == "text/event-stream"


def test_removed_location_delivers_null() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = _sse(
            ("put", {"path": "/", "data": {"tds": 300}}),
            ("put", {"path": "/", "data": None}),
        )
        return httpx.Response(200, content=body)

    collector = _run_stream(handler)

    assert collector.values == [{"tds": 300}, None]


def test_cancel_event_reports_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=_sse(("cancel", None)))

    collector = _run_stream(handler)

    assert collector.values == []
    assert len(collector.errors) == 1
    assert "cancel" in str(collector.errors[0])


def test_http_error_reports_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": "Permission denied"})

    collector = _run_stream(handler)

    assert isinstance(collector.errors[0], httpx.HTTPStatusError)
