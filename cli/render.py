from __future__ import annotations

from typing import Any, Dict, Iterable

import typer

from display.base import PLACEHOLDER


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {PLACEHOLDER if value is None else value}")


def render_reading(payload: Dict[str, Any]) -> None:
    echo_heading("Temperature Reading")
    echo_key_values(
        [
            ("celsius", payload.get("celsius")),
            ("timestamp", payload.get("timestamp")),
        ]
    )


def render_status(payload: Dict[str, Any]) -> None:
    echo_heading("Monitor Status")
    echo_key_values(
        [
            ("device_id", payload.get("device_id")),
            ("status", payload.get("status")),
            ("interval_ms", payload.get("interval_ms")),
            ("timer_enabled", payload.get("timer_enabled")),
            ("cycles", payload.get("cycles")),
        ]
    )
    typer.echo()
    render_reading(payload.get("reading") or {})
