"""Turn raw feed records into typed readings."""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from models.records import Reading

logger = logging.getLogger(__name__)

# Plain decimal with optional sign and exponent, ASCII digits only.
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def is_offline_signal(raw: Any) -> bool:
    """A missing or empty non-record payload means the source has no value."""
    if raw is None:
        return True
    if isinstance(raw, Mapping):
        return False
    return not raw


def coerce_number(value: Any, field: str = "value") -> float:
    """Coerce a raw field to a finite float, degrading to 0.0.

    Malformed input is not an error here: absent, unparseable, ``NaN`` and
    infinite values all become ``0.0``, as does a blank string.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        parsed = float(value)
    elif isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            return 0.0
        if not _NUMBER_RE.fullmatch(candidate):
            logger.debug(
                "Coercing unparseable %s to 0", field, extra={"invalid_value": value}
            )
            return 0.0
        parsed = float(candidate)
    else:
        logger.debug(
            "Coercing unsupported %s type to 0", field, extra={"invalid_value": repr(value)}
        )
        return 0.0

    if not math.isfinite(parsed):
        logger.debug("Coercing non-finite %s to 0", field, extra={"invalid_value": value})
        return 0.0
    return parsed


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string or epoch milliseconds into an aware UTC datetime.

    Returns ``None`` when the value is absent or cannot be interpreted.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if not isinstance(value, str):
        return None

    candidate = value.strip()
    if not candidate:
        return None

    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc)


def normalize_reading(raw: Any, now: datetime) -> Optional[Reading]:
    """Build a :class:`Reading` from a raw feed record.

    ``None`` is returned for an offline signal (absent payload). Records that
    are not mappings carry no fields and normalize to zeros stamped ``now``.
    """
    if is_offline_signal(raw):
        return None

    record: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}

    timestamp = parse_timestamp(record.get("timestamp"))
    if timestamp is None:
        if record.get("timestamp") is not None:
            logger.debug(
                "Falling back to receipt time for invalid timestamp",
                extra={"invalid_value": record.get("timestamp")},
            )
        timestamp = now

    return Reading(
        timestamp=timestamp,
        tds=coerce_number(record.get("tds"), "tds"),
        temperature=coerce_number(record.get("temperature"), "temperature"),
    )
