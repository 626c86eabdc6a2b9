"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Request, status

from app.schemas import DashboardView, ReadingOut
from services.monitor import TankMonitor

router = APIRouter()


def get_monitor(request: Request) -> TankMonitor:
    return request.app.state.monitor


@router.get(
    "/dashboard",
    response_model=DashboardView,
    summary="Current readings, connectivity, safety status and chart series.",
)
async def get_dashboard(monitor: TankMonitor = Depends(get_monitor)) -> DashboardView:
    return monitor.snapshot()


@router.get(
    "/readings",
    response_model=List[ReadingOut],
    summary="Readings retained in the history window, in arrival order.",
)
async def get_readings(monitor: TankMonitor = Depends(get_monitor)) -> List[ReadingOut]:
    return [
        ReadingOut(timestamp=reading.timestamp, tds=reading.tds, temperature=reading.temperature)
        for reading in monitor.readings()
    ]


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck(monitor: TankMonitor = Depends(get_monitor)) -> dict[str, str]:
    return {"status": "ok", "feed": "online" if monitor.online else "offline"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status and /ui for the dashboard."}
