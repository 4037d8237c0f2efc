from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_reading, render_status
from display.base import format_reading
from logging_config import configure_logging
from services.agent import build_agent, build_sensor, build_sink_config
from services.errors import DeliveryFailure, TelemetryError
from services.parsing import parse_raw_reading
from sensors.w1 import W1SysfsSensor
from services.reporter import TemperatureReporter
from settings import Settings, get_settings


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


class SensorKind(str, Enum):
    w1 = "w1"
    simulated = "simulated"


class DisplayKind(str, Enum):
    log = "log"
    console = "console"


app = typer.Typer(
    help="Sample an aquarium temperature sensor and report readings to InfluxDB.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


def _apply_overrides(
    settings: Settings,
    device_id: Optional[str] = None,
    sensor: Optional[SensorKind] = None,
    interval_ms: Optional[int] = None,
    display: Optional[DisplayKind] = None,
) -> Settings:
    overrides = {
        "device_id": device_id,
        "sensor_kind": sensor.value if sensor is not None else None,
        "sample_interval_ms": interval_ms,
        "display_kind": display.value if display is not None else None,
    }
    return replace(settings, **{key: value for key, value in overrides.items() if value is not None})


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
        help="Seconds to wait for the monitor API.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("run")
def run_command(
    device_id: Optional[str] = typer.Option(None, "--device-id", "-d", help="1-Wire device identifier."),
    sensor: Optional[SensorKind] = typer.Option(None, "--sensor", help="Sensor driver."),
    interval_ms: Optional[int] = typer.Option(
        None, "--interval-ms", min=1, help="Milliseconds between samples."
    ),
    display: Optional[DisplayKind] = typer.Option(None, "--display", help="Display driver."),
    duration: Optional[float] = typer.Option(
        None, "--duration", min=0, help="Stop after this many seconds (runs until Ctrl-C otherwise)."
    ),
) -> None:
    """Sample the sensor in the foreground and report every reading."""
    configure_logging()
    settings = _apply_overrides(get_settings(), device_id, sensor, interval_ms, display)
    agent = build_agent(settings).start()
    typer.secho(
        f"Monitoring {settings.device_id} every {settings.sample_interval_ms} ms "
        f"-> {settings.sink_url} (db={settings.sink_db})",
        fg=typer.colors.GREEN,
    )
    try:
        threading.Event().wait(duration)
    except KeyboardInterrupt:
        typer.echo()
    finally:
        last_reading = agent.monitor.get_reading()
        agent.shutdown()
    typer.echo(f"Last reading: {format_reading(last_reading)}")


@app.command("sample")
def sample_command(
    device_id: Optional[str] = typer.Option(None, "--device-id", "-d", help="1-Wire device identifier."),
    sensor: Optional[SensorKind] = typer.Option(None, "--sensor", help="Sensor driver."),
    report: bool = typer.Option(
        False,
        "--report/--no-report",
        help="Write the reading to the configured sink.",
    ),
) -> None:
    """Read the sensor once and print the parsed reading."""
    settings = _apply_overrides(get_settings(), device_id, sensor)
    try:
        lines = build_sensor(settings).read(settings.device_id)
        reading = parse_raw_reading(lines, datetime.now(timezone.utc))
    except TelemetryError as exc:
        typer.secho(f"Could not read {settings.device_id}: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    render_reading({"celsius": reading.celsius, "timestamp": reading.timestamp.isoformat()})

    if not report:
        return

    reporter = TemperatureReporter(build_sink_config(settings), workers=1)
    try:
        reporter.deliver(reading)
    except DeliveryFailure as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    finally:
        reporter.shutdown()
    typer.secho(f"Reported to {settings.sink_url} (db={settings.sink_db}).", fg=typer.colors.GREEN)


@app.command("reading")
def reading_command(ctx: typer.Context) -> None:
    """Fetch the latest reading from a running monitor."""
    state = _get_state(ctx)
    render_reading(state.client.get_reading())


@app.command("status")
def status_command(
    ctx: typer.Context,
    sample: bool = typer.Option(
        False,
        "--sample/--no-sample",
        help="Request a sampling cycle before fetching the status.",
    ),
) -> None:
    """Show sampling state and the latest reading of a running monitor."""
    state = _get_state(ctx)
    if sample:
        state.client.request_sample()
    render_status(state.client.get_status())


@app.command("devices")
def devices_command(
    w1_root: Optional[Path] = typer.Option(
        None, "--w1-root", help="1-Wire devices directory (defaults to MONITOR_W1_ROOT env)."
    ),
) -> None:
    """List the 1-Wire devices the kernel driver has discovered."""
    root = w1_root if w1_root is not None else Path(get_settings().w1_root)
    devices = W1SysfsSensor(root).list_devices()
    if not devices:
        typer.secho(f"No 1-Wire devices found under {root}.", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=1)
    for device in devices:
        typer.echo(device)
