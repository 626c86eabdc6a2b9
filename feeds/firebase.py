"""Firebase Realtime Database value listener over the REST streaming API.

The database pushes Server-Sent Events for the watched location::

    event: put
    data: {"path": "/", "data": {"tds": 312, "temperature": 22.4}}

``put`` replaces the value at ``path`` (relative to the watched location),
``patch`` merges children into it. The feed keeps a local copy of the record
and hands the whole record to the value handler after every change, which is
what a client-side value listener observes.
"""

from __future__ import annotations

import copy
import json
import logging
import threading
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

import httpx

from feeds.base import (
    ErrorHandler,
    FeedConfigurationError,
    FeedError,
    FeedSource,
    FeedSubscription,
    ValueHandler,
)

logger = logging.getLogger(__name__)

_TERMINAL_EVENTS = {"cancel", "auth_revoked"}


def iter_sse(lines: Iterable[str]) -> Iterator[Tuple[str, str]]:
    """Group raw stream lines into ``(event, data)`` pairs."""
    event: Optional[str] = None
    data_lines: List[str] = []
    for line in lines:
        line = line.rstrip("\r")
        if not line:
            if event is not None or data_lines:
                yield event or "message", "\n".join(data_lines)
            event = None
            data_lines = []
            continue
        if line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "event":
            event = value
        elif name == "data":
            data_lines.append(value)
    if event is not None or data_lines:
        yield event or "message", "\n".join(data_lines)


def _segments(path: str) -> List[str]:
    return [segment for segment in path.split("/") if segment]


def set_at_path(record: Any, path: str, value: Any) -> Any:
    """Return a copy of ``record`` with ``value`` written at ``path``.

    A ``None`` value deletes the child, mirroring how the database reports
    removals. Writing at the root replaces the record.
    """
    segments = _segments(path)
    if not segments:
        return copy.deepcopy(value)

    root: Dict[str, Any] = copy.deepcopy(record) if isinstance(record, dict) else {}
    node = root
    for segment in segments[:-1]:
        child = node.get(segment)
        if not isinstance(child, dict):
            child = {}
            node[segment] = child
        node = child

    if value is None:
        node.pop(segments[-1], None)
    else:
        node[segments[-1]] = copy.deepcopy(value)
    return root or None


def apply_event(record: Any, event: str, payload: Dict[str, Any]) -> Any:
    path = payload.get("path") or "/"
    data = payload.get("data")
    if event == "put":
        return set_at_path(record, path, data)
    if event == "patch":
        if not isinstance(data, dict):
            raise FeedError(f"Malformed patch payload at {path!r}.")
        updated = record
        base = path.rstrip("/")
        for key, value in data.items():
            updated = set_at_path(updated, f"{base}/{key}", value)
        return updated
    raise FeedError(f"Unsupported event {event!r}.")


class FirebaseFeed(FeedSource):
    """Streams one database location, one background thread per subscription."""

    name = "firebase"

    def __init__(
        self,
        database_url: Optional[str],
        path: str,
        transport: Optional[httpx.BaseTransport] = None,
        connect_timeout: float = 10.0,
    ) -> None:
        if not database_url:
            raise FeedConfigurationError("Firebase feed requires a database URL.")
        self.database_url = database_url.rstrip("/")
        self.path = path.strip("/")
        self._transport = transport
        self._timeout = httpx.Timeout(connect_timeout, read=None)

    @property
    def url(self) -> str:
        return f"{self.database_url}/{self.path}.json"

    def subscribe(self, on_value: ValueHandler, on_error: ErrorHandler) -> FeedSubscription:
        stop = threading.Event()
        client = httpx.Client(
            transport=self._transport,
            timeout=self._timeout,
            follow_redirects=True,
            headers={"Accept": "text/event-stream"},
        )
        subscription = FeedSubscription(on_value, on_error, name=self.name)
        worker = threading.Thread(
            target=self._run,
            args=(client, subscription, stop),
            name="firebase-feed",
            daemon=True,
        )

        def release() -> None:
            stop.set()
            client.close()
            if threading.current_thread() is not worker:
                worker.join(timeout=1.0)

        subscription.set_release(release)
        worker.start()
        logger.info("Subscribed to firebase feed", extra={"feed": self.name, "path": self.path})
        return subscription

    def _run(
        self,
        client: httpx.Client,
        subscription: FeedSubscription,
        stop: threading.Event,
    ) -> None:
        try:
            self._stream(client, subscription, stop)
        except (httpx.HTTPError, FeedError, ValueError) as exc:
            if stop.is_set():
                return
            logger.warning(
                "Firebase stream failed",
                extra={"feed": self.name, "path": self.path, "reason": str(exc)},
            )
            subscription.deliver_error(exc)
            return

        if not stop.is_set():
            subscription.deliver_error(FeedError("Stream closed by server."))

    def _stream(
        self,
        client: httpx.Client,
        subscription: FeedSubscription,
        stop: threading.Event,
    ) -> None:
        record: Any = None
        with client.stream("GET", self.url) as response:
            response.raise_for_status()
            for event, data in iter_sse(response.iter_lines()):
                if stop.is_set():
                    return
                if event == "keep-alive":
                    continue
                if event in _TERMINAL_EVENTS:
                    raise FeedError(f"Stream terminated by server ({event}).")
                if event not in {"put", "patch"}:
                    logger.debug("Ignoring stream event", extra={"event": event})
                    continue

                payload = json.loads(data)
                if not isinstance(payload, dict):
                    raise FeedError(f"Malformed {event} payload.")
                record = apply_event(record, event, payload)
                if not subscription.deliver_value(record):
                    return
