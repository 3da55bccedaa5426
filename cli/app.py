from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import httpx
import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_readings, render_warnings


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the air quality dashboard service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


_WINDOW_HELP = "10, 30, 1h, 6h, 24h or all (defaults to CLI_TIME_FILTER env or all)."


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


def _require_device_code(state: CLIState) -> str:
    if not state.config.device_code:
        typer.secho(
            "A device code is required (use --device-code or DEVICE_CODE).",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=2)
    return state.config.device_code


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Dashboard API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    device_code: Optional[str] = typer.Option(
        None,
        "--device-code",
        "-d",
        help="Device code (defaults to DEVICE_CODE env).",
    ),
    poll_interval: Optional[float] = typer.Option(
        None,
        "--poll-interval",
        help="Seconds between refreshes for the watch command.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(
        base_url=base_url,
        device_code=device_code,
        poll_interval=poll_interval,
    )
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("validate")
def validate_command(
    ctx: typer.Context,
    code: str = typer.Argument(..., help="Device code to check."),
) -> None:
    """Check whether the service accepts a device code."""
    state = _get_state(ctx)
    if state.client.validate(code):
        typer.secho("Device code accepted", fg=typer.colors.GREEN)
        return
    typer.secho("Invalid device code", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.command("readings")
def readings_command(
    ctx: typer.Context,
    time_filter: Optional[str] = typer.Option(None, "--window", "-w", help=_WINDOW_HELP),
    limit: int = typer.Option(10, "--limit", help="Rows to print from the end of the window."),
) -> None:
    """Show the readings of a time window."""
    state = _get_state(ctx)
    device_code = _require_device_code(state)
    payload = state.client.get_readings(device_code, time_filter or state.config.time_filter)
    render_readings(payload, limit=limit)


@app.command("warnings")
def warnings_command(
    ctx: typer.Context,
    time_filter: Optional[str] = typer.Option(None, "--window", "-w", help=_WINDOW_HELP),
) -> None:
    """Show active and historical threshold warnings."""
    state = _get_state(ctx)
    device_code = _require_device_code(state)
    payload = state.client.get_warnings(device_code, time_filter or state.config.time_filter)
    render_warnings(payload)


@app.command("export")
def export_command(
    ctx: typer.Context,
    output: Path = typer.Argument(Path("."), help="Target file or directory."),
    fmt: str = typer.Option("csv", "--format", "-f", help="csv or excel."),
    metric: List[str] = typer.Option([], "--metric", "-m", help="Metric key; repeat for several."),
    time_filter: Optional[str] = typer.Option(None, "--window", "-w", help=_WINDOW_HELP),
) -> None:
    """Download readings as a CSV or Excel file."""
    state = _get_state(ctx)
    if fmt not in {"csv", "excel"}:
        raise typer.BadParameter("Format must be 'csv' or 'excel'.")
    target = state.client.download_export(
        _require_device_code(state), time_filter or state.config.time_filter, fmt, metric, output
    )
    typer.secho(f"Saved {target}", fg=typer.colors.GREEN)


@app.command("watch")
def watch_command(
    ctx: typer.Context,
    time_filter: Optional[str] = typer.Option(None, "--window", "-w", help=_WINDOW_HELP),
    count: int = typer.Option(0, "--count", "-n", help="Stop after this many refreshes (0 runs forever)."),
) -> None:
    """Poll warnings periodically, keeping the last result on transient failures."""
    state = _get_state(ctx)
    device_code = _require_device_code(state)
    window = time_filter or state.config.time_filter
    iteration = 0
    while True:
        iteration += 1
        try:
            payload = state.client.get_warnings(device_code, window)
        except httpx.TransportError as exc:
            typer.secho(f"Refresh failed: {exc}; retrying.", fg=typer.colors.YELLOW, err=True)
        else:
            render_warnings(payload)
        if count and iteration >= count:
            return
        typer.echo()
        time.sleep(state.config.poll_interval)
