from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_FEED_KIND_ENV = "FEED_KIND"
_DATABASE_URL_ENV = "FIREBASE_DATABASE_URL"
_FEED_PATH_ENV = "FEED_PATH"
_MOCK_INTERVAL_ENV = "MOCK_FEED_INTERVAL"
_WINDOW_ENV = "HISTORY_WINDOW_SECONDS"
_TDS_MAX_ENV = "TDS_SAFE_MAX"
_TEMP_MIN_ENV = "TEMP_SAFE_MIN"
_TEMP_MAX_ENV = "TEMP_SAFE_MAX"
_DISPLAY_TZ_ENV = "DISPLAY_TIMEZONE"
_LOG_LEVEL_ENV = "LOG_LEVEL"
_FEED_LOG_LEVEL_ENV = "FEED_LOG_LEVEL"

FEED_KINDS = ("mock", "firebase", "manual")


@dataclass(frozen=True)
class Settings:
    feed_kind: str
    database_url: Optional[str]
    feed_path: str
    mock_interval: float
    window_seconds: float
    tds_safe_max: float
    temp_safe_min: float
    temp_safe_max: float
    display_timezone: Optional[str]
    log_level: str
    feed_log_level: Optional[str] = None


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_float_env(name: str, default: float, positive: bool = False) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    if positive and parsed <= 0:
        return default
    return parsed


def _read_feed_kind(default: str) -> str:
    candidate = _read_str_env(_FEED_KIND_ENV, default).lower()
    return candidate if candidate in FEED_KINDS else default


def _read_log_level(default: Optional[str], name: str = _LOG_LEVEL_ENV) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        feed_kind=_read_feed_kind("mock"),
        database_url=_read_optional_env(_DATABASE_URL_ENV, None),
        feed_path=_read_str_env(_FEED_PATH_ENV, "waterMonitoring/mainTank/latest").strip("/"),
        mock_interval=_read_float_env(_MOCK_INTERVAL_ENV, 2.0, positive=True),
        window_seconds=_read_float_env(_WINDOW_ENV, 60.0, positive=True),
        tds_safe_max=_read_float_env(_TDS_MAX_ENV, 500.0),
        temp_safe_min=_read_float_env(_TEMP_MIN_ENV, 15.0),
        temp_safe_max=_read_float_env(_TEMP_MAX_ENV, 30.0),
        display_timezone=_read_optional_env(_DISPLAY_TZ_ENV, None),
        log_level=_read_log_level("INFO") or "INFO",
        feed_log_level=_read_log_level(None, _FEED_LOG_LEVEL_ENV),
    )
