from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer

from models.parameters import PARAMETERS


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_readings(payload: Dict[str, Any], limit: int = 10) -> None:
    timestamps: List[str] = payload.get("timestamp") or []
    echo_heading("Readings")
    typer.echo(f"count: {len(timestamps)}")
    if not timestamps:
        typer.echo("No readings available.")
        return

    typer.echo()
    echo_heading("Latest")
    latest_pairs = [("timestamp", timestamps[-1])]
    for parameter in PARAMETERS:
        values = payload.get(parameter.key) or []
        if values:
            latest_pairs.append((parameter.key, f"{values[-1]:.1f} {parameter.unit}"))
    echo_key_values(latest_pairs)

    if len(timestamps) > 1 and limit > 0:
        typer.echo()
        echo_heading(f"Last {min(limit, len(timestamps))}")
        keys = [parameter.key for parameter in PARAMETERS]
        typer.echo("  ".join(["timestamp", *keys]))
        for index in range(max(0, len(timestamps) - limit), len(timestamps)):
            cells = [timestamps[index]]
            for key in keys:
                values = payload.get(key) or []
                cells.append(f"{values[index]:.1f}" if index < len(values) else "-")
            typer.echo("  ".join(cells))


def _render_warning_list(warnings: List[Dict[str, Any]], empty_text: str) -> None:
    if not warnings:
        typer.echo(empty_text)
        return
    for warning in warnings:
        typer.echo(
            f"  - [{warning.get('timestamp')}] {warning.get('title')}: {warning.get('message')}"
        )


def render_warnings(payload: Dict[str, Any]) -> None:
    active = payload.get("active") or []
    echo_heading("Active Warnings")
    if active:
        for warning in active:
            typer.secho(
                f"  - {warning.get('title')}: {warning.get('message')}",
                fg=typer.colors.RED,
            )
    else:
        typer.echo("No active warnings.")

    typer.echo()
    echo_heading("Window History")
    _render_warning_list(payload.get("history") or [], "No warnings in this window.")

    typer.echo()
    echo_heading("Recent (24h)")
    _render_warning_list(payload.get("recent") or [], "No recent threshold alerts.")
