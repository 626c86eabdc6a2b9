from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from app.api import get_monitor
from services.classification import MetricStatus
from services.monitor import TankMonitor


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))

STATUS_LABELS = {
    MetricStatus.unknown: "—",
    MetricStatus.safe: "Safe",
    MetricStatus.high: "High",
    MetricStatus.out_of_range: "Out of range",
}

REFRESH_MS = 2000

router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_index", response_class=HTMLResponse)
async def ui_index(
    request: Request,
    monitor: TankMonitor = Depends(get_monitor),
) -> HTMLResponse:
    view = monitor.snapshot()
    return templates.TemplateResponse(
        request,
        "ui/index.html",
        {
            "view": view,
            "status_labels": {status.value: label for status, label in STATUS_LABELS.items()},
            "refresh_ms": REFRESH_MS,
        },
    )
