from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_dashboard, render_readings


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Terminal view of the tank monitor dashboard.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Monitor API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each HTTP request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, request_timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("status")
def status_command(ctx: typer.Context) -> None:
    """Show current readings, safety status and the buffered history."""
    state = _get_state(ctx)
    render_dashboard(state.client.get_dashboard())


@app.command("watch")
def watch_command(
    ctx: typer.Context,
    interval: Optional[float] = typer.Option(
        None,
        "--interval",
        "-i",
        help="Seconds between refreshes (defaults to CLI_POLL_INTERVAL or 2).",
    ),
    count: Optional[int] = typer.Option(
        None,
        "--count",
        "-n",
        min=1,
        help="Stop after this many refreshes; runs until interrupted when omitted.",
    ),
) -> None:
    """Refresh the dashboard repeatedly."""
    state = _get_state(ctx)
    delay = interval if interval is not None else state.config.poll_interval
    shown = 0
    try:
        while count is None or shown < count:
            if shown:
                typer.echo()
                time.sleep(delay)
            render_dashboard(state.client.get_dashboard())
            shown += 1
    except KeyboardInterrupt:
        typer.echo()


@app.command("readings")
def readings_command(ctx: typer.Context) -> None:
    """List the raw readings retained in the history window."""
    state = _get_state(ctx)
    render_readings(state.client.get_readings())
