from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.api import router
from app.web import router as web_router
from feeds.base import FeedSource
from feeds.factory import build_feed
from logging_config import configure_logging
from services.monitor import TankMonitor, build_default_monitor

logger = logging.getLogger(__name__)


def create_app(
    monitor: Optional[TankMonitor] = None,
    feed: Optional[FeedSource] = None,
) -> FastAPI:
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        active_monitor = monitor or build_default_monitor()
        source = feed or build_feed()
        app.state.monitor = active_monitor
        app.state.feed = source
        subscription = active_monitor.attach(source)
        app.state.subscription = subscription
        try:
            yield
        finally:
            subscription.unsubscribe()
            if monitor is None:
                build_default_monitor.cache_clear()

    app = FastAPI(
        title="Tank Monitor",
        description="Live water-tank dashboard over a real-time sensor feed.",
        version="0.1.0",
        lifespan=lifespan,
    )
    static_dir = Path(__file__).resolve().parent / "static"
    app.mount("/static", StaticFiles(directory=static_dir), name="static")
    app.include_router(router)
    app.include_router(web_router)
    return app


app = create_app()
