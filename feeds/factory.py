from __future__ import annotations

from typing import Optional

from feeds.base import FeedConfigurationError, FeedSource
from feeds.firebase import FirebaseFeed
from feeds.manual import ManualFeed
from feeds.mock import MockFeed
from settings import Settings, get_settings


def build_feed(settings: Optional[Settings] = None) -> FeedSource:
    """Select the feed source named by ``FEED_KIND``."""
    settings = settings or get_settings()
    if settings.feed_kind == "firebase":
        return FirebaseFeed(database_url=settings.database_url, path=settings.feed_path)
    if settings.feed_kind == "mock":
        return MockFeed(interval=settings.mock_interval)
    if settings.feed_kind == "manual":
        return ManualFeed()
    raise FeedConfigurationError(f"Unknown feed kind {settings.feed_kind!r}.")
