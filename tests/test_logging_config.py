from __future__ import annotations

import logging

from logging_config import FEED_LOGGERS, ContextualFormatter, build_logging_config
from settings import Settings


def _settings(log_level: str = "INFO", feed_log_level=None) -> Settings:
    return Settings(
        feed_kind="manual",
        database_url=None,
        feed_path="waterMonitoring/mainTank/latest",
        mock_interval=2.0,
        window_seconds=60.0,
        tds_safe_max=500.0,
        temp_safe_min=15.0,
        temp_safe_max=30.0,
        display_timezone=None,
        log_level=log_level,
        feed_log_level=feed_log_level,
    )


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="services.monitor",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Tank feed offline",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_context_keys() -> None:
    formatter = ContextualFormatter(fmt="%(levelname)s | %(message)s")

    message = formatter.format(_record(reason="permission denied", buffer_size=3, unrelated="x"))

    assert message == "WARNING | Tank feed offline | reason=permission denied buffer_size=3"


def test_formatter_skips_missing_and_none_values() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", extra_keys=["feed", "path"])

    assert formatter.format(_record(feed=None)) == "Tank feed offline"
    assert formatter.format(_record(path="waterMonitoring/mainTank/latest")) == (
        "Tank feed offline | path=waterMonitoring/mainTank/latest"
    )


def test_measurements_render_with_one_decimal() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    message = formatter.format(_record(tds=312.456, temperature=22.04, evicted=2))

    assert message == "Tank feed offline | tds=312.5 temperature=22.0 evicted=2"


def test_feed_loggers_follow_feed_level() -> None:
    config = build_logging_config(_settings(log_level="warning", feed_log_level="DEBUG"))

    assert config["root"]["level"] == "WARNING"
    assert config["handlers"]["default"]["level"] == "DEBUG"
    assert config["loggers"]["httpx"] == {"level": "WARNING"}
    for name in FEED_LOGGERS:
        assert config["loggers"][name] == {"level": "DEBUG"}


def test_feed_level_unset_keeps_single_level() -> None:
    config = build_logging_config(_settings(log_level="INFO"), level="error")

    assert config["root"]["level"] == "ERROR"
    assert config["handlers"]["default"]["level"] == "ERROR"
    assert set(config["loggers"]) == {"httpx"}
