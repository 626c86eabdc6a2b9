from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer

_STATUS_COLORS = {
    "safe": typer.colors.GREEN,
    "high": typer.colors.RED,
    "out-of-range": typer.colors.YELLOW,
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _format_value(value: Any) -> str:
    if value is None:
        return "--"
    return f"{float(value):.1f}"


def render_metric(metric: Dict[str, Any]) -> None:
    echo_heading(str(metric.get("name")))
    safe_range = metric.get("safe_range") or {}
    echo_key_values(
        [
            ("value", f"{_format_value(metric.get('value'))} {metric.get('unit', '')}".rstrip()),
            ("safe_range", f"{safe_range.get('minimum')} – {safe_range.get('maximum')}"),
            ("trend", metric.get("trend")),
        ]
    )
    status = metric.get("status", "unknown")
    typer.echo("status: ", nl=False)
    typer.secho(str(status), fg=_STATUS_COLORS.get(status))


def render_dashboard(payload: Dict[str, Any]) -> None:
    echo_heading("Tank Status")
    online = bool(payload.get("online"))
    typer.echo("feed: ", nl=False)
    typer.secho(
        "online" if online else "offline",
        fg=typer.colors.GREEN if online else typer.colors.RED,
    )
    echo_key_values(
        [
            ("last_updated", payload.get("last_updated_display")),
            ("points_buffered", payload.get("point_count")),
        ]
    )
    if payload.get("last_error"):
        typer.echo(f"last_error: {payload['last_error']}")

    for key in ("tds", "temperature"):
        metric = payload.get(key)
        if metric:
            typer.echo()
            render_metric(metric)

    chart = payload.get("chart") or {}
    typer.echo()
    echo_heading(f"History (last {int(payload.get('window_seconds') or 0)}s)")
    if chart.get("ready"):
        render_history(chart.get("labels") or [], chart.get("tds") or [], chart.get("temperature") or [])
    else:
        typer.echo("Waiting for enough data points…")


def render_history(labels: List[str], tds: List[float], temperature: List[float]) -> None:
    for label, tds_value, temperature_value in zip(labels, tds, temperature):
        typer.echo(f"  - {label}  tds={tds_value:.1f}  temperature={temperature_value:.1f}")


def render_readings(readings: List[Dict[str, Any]]) -> None:
    echo_heading(f"Buffered Readings ({len(readings)})")
    if not readings:
        typer.echo("No readings in the history window.")
        return
    for reading in readings:
        typer.echo(
            f"  - {reading.get('timestamp')}  tds={_format_value(reading.get('tds'))}"
            f"  temperature={_format_value(reading.get('temperature'))}"
        )
