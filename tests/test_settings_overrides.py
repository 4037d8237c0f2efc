from __future__ import annotations

from services.agent import build_agent, build_default_agent
from settings import get_settings


def test_defaults(monkeypatch) -> None:
    for name in (
        "MONITOR_DEVICE_ID",
        "MONITOR_INTERVAL_MS",
        "MONITOR_TIMER_ENABLED",
        "MONITOR_READ_TIMEOUT_MS",
        "INFLUXDB_URL",
        "INFLUXDB_CREDENTIALS",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.sample_interval_ms == 5000
        assert settings.timer_enabled is True
        assert settings.read_timeout_ms is None
        assert settings.sink_url == "http://localhost:8086"
        assert settings.sink_credentials is None
    finally:
        get_settings.cache_clear()


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("MONITOR_DEVICE_ID", "28-0000075f1a2b")
    monkeypatch.setenv("MONITOR_SENSOR", "simulated")
    monkeypatch.setenv("MONITOR_W1_ROOT", str(tmp_path))
    monkeypatch.setenv("MONITOR_INTERVAL_MS", "1500")
    monkeypatch.setenv("MONITOR_TIMER_ENABLED", "off")
    monkeypatch.setenv("MONITOR_READ_TIMEOUT_MS", "750")
    monkeypatch.setenv("INFLUXDB_URL", "http://influx.local:8086/")
    monkeypatch.setenv("INFLUXDB_DB", "reef")
    monkeypatch.setenv("INFLUXDB_MEASUREMENT", "tank")
    monkeypatch.setenv("INFLUXDB_CREDENTIALS", "writer:secret")
    monkeypatch.setenv("REPORTER_WORKER_COUNT", "2")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    get_settings.cache_clear()
    build_default_agent.cache_clear()
    agent = build_default_agent()

    try:
        settings = get_settings()
        assert settings.log_level == "DEBUG"
        assert agent.device_id == "28-0000075f1a2b"
        assert agent.monitor.interval_ms == 1500
        assert agent.monitor.timer_enabled is False
        assert agent.monitor.read_timeout_ms == 750
        assert agent.reporter.config.url == "http://influx.local:8086"
        assert agent.reporter.config.db == "reef"
        assert agent.reporter.config.measurement == "tank"
        assert agent.reporter.config.credentials == "writer:secret"
        assert agent.reporter.executor._max_workers == 2
    finally:
        agent.shutdown()
        build_default_agent.cache_clear()
        get_settings.cache_clear()


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("MONITOR_INTERVAL_MS", "-5")
    monkeypatch.setenv("MONITOR_TIMER_ENABLED", "maybe")
    monkeypatch.setenv("MONITOR_SENSOR", "thermistor")
    monkeypatch.setenv("INFLUXDB_TIMEOUT", "abc")
    monkeypatch.setenv("INFLUXDB_CREDENTIALS", "   ")

    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.sample_interval_ms == 5000
        assert settings.timer_enabled is True
        assert settings.sensor_kind == "w1"
        assert settings.sink_timeout == 10.0
        assert settings.sink_credentials is None
        agent = build_agent(settings)
        agent.shutdown()
    finally:
        get_settings.cache_clear()
