"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Reading:
    """A single normalized tank sample."""

    timestamp: datetime
    tds: float
    temperature: float
