from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

CLIENT_NAME = "aquarium_temperature_monitor"
CLIENT_VERSION = "0.1.0"

_DEVICE_ID_ENV = "MONITOR_DEVICE_ID"
_SENSOR_ENV = "MONITOR_SENSOR"
_W1_ROOT_ENV = "MONITOR_W1_ROOT"
_INTERVAL_ENV = "MONITOR_INTERVAL_MS"
_TIMER_ENABLED_ENV = "MONITOR_TIMER_ENABLED"
_READ_TIMEOUT_ENV = "MONITOR_READ_TIMEOUT_MS"
_DISPLAY_ENV = "MONITOR_DISPLAY"
_SINK_URL_ENV = "INFLUXDB_URL"
_SINK_DB_ENV = "INFLUXDB_DB"
_SINK_MEASUREMENT_ENV = "INFLUXDB_MEASUREMENT"
_SINK_CREDENTIALS_ENV = "INFLUXDB_CREDENTIALS"
_SINK_TIMEOUT_ENV = "INFLUXDB_TIMEOUT"
_WORKER_COUNT_ENV = "REPORTER_WORKER_COUNT"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    device_id: str
    sensor_kind: str
    w1_root: str
    sample_interval_ms: int
    timer_enabled: bool
    read_timeout_ms: Optional[int]
    display_kind: str
    sink_url: str
    sink_db: str
    sink_measurement: str
    sink_credentials: Optional[str]
    sink_timeout: float
    reporter_workers: int
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: Optional[int]) -> Optional[int]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUE_VALUES:
        return True
    if candidate in _FALSE_VALUES:
        return False
    return default


def _read_choice(name: str, choices: set[str], default: str) -> str:
    candidate = _read_str_env(name, default).lower()
    return candidate if candidate in choices else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        device_id=_read_str_env(_DEVICE_ID_ENV, "28-000000000000"),
        sensor_kind=_read_choice(_SENSOR_ENV, {"w1", "simulated"}, "w1"),
        w1_root=_read_str_env(_W1_ROOT_ENV, "/sys/bus/w1/devices"),
        sample_interval_ms=_read_positive_int(_INTERVAL_ENV, 5000) or 5000,
        timer_enabled=_read_bool(_TIMER_ENABLED_ENV, True),
        read_timeout_ms=_read_positive_int(_READ_TIMEOUT_ENV, None),
        display_kind=_read_choice(_DISPLAY_ENV, {"log", "console"}, "log"),
        sink_url=_read_str_env(_SINK_URL_ENV, "http://localhost:8086").rstrip("/"),
        sink_db=_read_str_env(_SINK_DB_ENV, "aquarium"),
        sink_measurement=_read_str_env(_SINK_MEASUREMENT_ENV, "temperature"),
        sink_credentials=_read_optional_env(_SINK_CREDENTIALS_ENV, None),
        sink_timeout=_read_positive_float(_SINK_TIMEOUT_ENV, 10.0),
        reporter_workers=_read_positive_int(_WORKER_COUNT_ENV, 4) or 4,
        log_level=_read_log_level("INFO"),
    )
