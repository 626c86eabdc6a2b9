"""Pydantic schemas for the view-state exposed over HTTP."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from services.classification import MetricStatus


class SafeRange(BaseModel):
    """Inclusive safe band for a metric; ``minimum`` is 0 for TDS."""

    minimum: float
    maximum: float


class MetricView(BaseModel):
    """Status card contents for a single metric."""

    model_config = ConfigDict(frozen=True)

    name: str
    unit: str
    value: Optional[float] = Field(
        default=None, description="Latest value, null until the first reading arrives."
    )
    status: MetricStatus = MetricStatus.unknown
    trend: str
    gauge_percent: float = Field(..., ge=0, le=100)
    safe_range: SafeRange


class ChartView(BaseModel):
    """Chart-ready series drawn from the history window in arrival order."""

    model_config = ConfigDict(frozen=True)

    ready: bool
    labels: List[str] = Field(default_factory=list)
    tds: List[float] = Field(default_factory=list)
    temperature: List[float] = Field(default_factory=list)


class DashboardView(BaseModel):
    """Read-only snapshot consumed by the rendering surfaces."""

    model_config = ConfigDict(frozen=True)

    online: bool
    last_updated: Optional[datetime] = None
    last_updated_display: str
    last_error: Optional[str] = None
    tds: MetricView
    temperature: MetricView
    chart: ChartView
    window_seconds: float
    point_count: int = Field(..., ge=0)


class ReadingOut(BaseModel):
    timestamp: datetime
    tds: float
    temperature: float
