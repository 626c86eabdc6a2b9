from __future__ import annotations

import logging
import time
from logging.config import dictConfig
from typing import Any, Dict, Iterable, Sequence

from settings import Settings, get_settings

_DEFAULT_EXTRA_KEYS = (
    "feed",
    "path",
    "event",
    "reason",
    "status",
    "tds",
    "temperature",
    "buffer_size",
    "evicted",
    "invalid_value",
)

# Sensor values are shown the way the dashboard cards show them.
_MEASUREMENT_KEYS = frozenset({"tds", "temperature"})

# Loggers that follow FEED_LOG_LEVEL instead of LOG_LEVEL when it is set.
FEED_LOGGERS = ("feeds", "services.normalizer")

_configured = False


class ContextualFormatter(logging.Formatter):
    converter = time.gmtime

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        extra_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._extra_keys: Sequence[str] = tuple(extra_keys or _DEFAULT_EXTRA_KEYS)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context_parts: list[str] = []
        for key in self._extra_keys:
            if not hasattr(record, key):
                continue
            value = getattr(record, key, None)
            if value is None:
                continue
            context_parts.append(f"{key}={self._format_value(key, value)}")
        if context_parts:
            return f"{message} | {' '.join(context_parts)}"
        return message

    @staticmethod
    def _format_value(key: str, value: Any) -> str:
        if key in _MEASUREMENT_KEYS and isinstance(value, float):
            return f"{value:.1f}"
        return str(value)


def _level_number(level: str | int) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level)
    return value if isinstance(value, int) else logging.INFO


def build_logging_config(settings: Settings, level: str | int | None = None) -> Dict[str, Any]:
    """Return the ``dictConfig`` mapping for the service and its feed threads."""
    log_level = level if level is not None else settings.log_level
    if isinstance(log_level, str):
        log_level = log_level.upper()

    # httpx logs every streaming request at INFO.
    loggers: Dict[str, Dict[str, Any]] = {"httpx": {"level": "WARNING"}}
    feed_level = settings.feed_log_level
    handler_level: str | int = log_level
    if feed_level:
        for name in FEED_LOGGERS:
            loggers[name] = {"level": feed_level}
        if _level_number(feed_level) < _level_number(log_level):
            handler_level = feed_level

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "contextual": {
                "()": "logging_config.ContextualFormatter",
                "fmt": "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S",
                "style": "%",
                "extra_keys": list(_DEFAULT_EXTRA_KEYS),
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "level": handler_level,
                "formatter": "contextual",
            }
        },
        "loggers": loggers,
        "root": {"handlers": ["default"], "level": log_level},
    }


def configure_logging(level: str | int | None = None) -> None:
    """Configure application-wide logging with contextual formatting."""
    global _configured
    if _configured:
        return

    dictConfig(build_logging_config(get_settings(), level))

    _configured = True
