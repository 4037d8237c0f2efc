"""Wiring of sensor, display, reporter and monitor from settings."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

import httpx

from display.base import Display
from display.console import ConsoleDisplay, LoggingDisplay
from sensors.base import TemperatureSensor
from sensors.simulated import SimulatedSensor
from sensors.w1 import W1SysfsSensor
from services.monitor import TemperatureMonitor
from services.reporter import SinkConfig, TemperatureReporter
from settings import Settings, get_settings


@dataclass
class TelemetryAgent:
    """Handle over one running monitor and the reporter it feeds."""

    device_id: str
    monitor: TemperatureMonitor
    reporter: TemperatureReporter

    def start(self) -> "TelemetryAgent":
        self.monitor.start(self.device_id)
        return self

    def shutdown(self) -> None:
        """Stop sampling first so no new deliveries are queued."""
        self.monitor.stop()
        self.reporter.shutdown()


def build_sensor(settings: Settings) -> TemperatureSensor:
    if settings.sensor_kind == "simulated":
        return SimulatedSensor()
    return W1SysfsSensor(root_path=Path(settings.w1_root))


def build_display(settings: Settings) -> Display:
    if settings.display_kind == "console":
        return ConsoleDisplay()
    return LoggingDisplay()


def build_sink_config(settings: Settings) -> SinkConfig:
    return SinkConfig(
        url=settings.sink_url,
        db=settings.sink_db,
        measurement=settings.sink_measurement,
        credentials=settings.sink_credentials,
        timeout=settings.sink_timeout,
    )


def build_agent(
    settings: Settings,
    *,
    sensor: Optional[TemperatureSensor] = None,
    display: Optional[Display] = None,
    client: Optional[httpx.Client] = None,
) -> TelemetryAgent:
    reporter = TemperatureReporter.start(
        build_sink_config(settings),
        client=client,
        workers=settings.reporter_workers,
    )
    monitor = TemperatureMonitor(
        sensor=sensor or build_sensor(settings),
        display=display or build_display(settings),
        reporter=reporter,
        interval_ms=settings.sample_interval_ms,
        timer_enabled=settings.timer_enabled,
        read_timeout_ms=settings.read_timeout_ms,
    )
    return TelemetryAgent(device_id=settings.device_id, monitor=monitor, reporter=reporter)


@lru_cache
def build_default_agent() -> TelemetryAgent:
    """Factory that wires the agent from environment settings."""
    return build_agent(get_settings())
