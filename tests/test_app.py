import time
from typing import Iterator, List

import httpx
import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from models.records import Reading
from services.agent import TelemetryAgent, build_agent, build_default_agent
from settings import Settings

DEVICE_ID = "28-0000075f1a2b"


class FixedSensor:
    def read(self, device_id: str) -> tuple[str, ...]:
        return ("72 01 4b : crc=57 YES", "72 01 4b t=24500")


class NullDisplay:
    def show(self, reading: Reading) -> None:
        return None


def _settings(**overrides) -> Settings:
    values = dict(
        device_id=DEVICE_ID,
        sensor_kind="simulated",
        w1_root="/nonexistent",
        sample_interval_ms=5000,
        timer_enabled=False,
        read_timeout_ms=None,
        display_kind="log",
        sink_url="http://influx.test",
        sink_db="testdb",
        sink_measurement="temperature",
        sink_credentials="user:pass",
        sink_timeout=1.0,
        reporter_workers=1,
        log_level="INFO",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def sink_requests() -> List[httpx.Request]:
    return []


@pytest.fixture
def api_client(monkeypatch, sink_requests) -> Iterator[TestClient]:
    agents: List[TelemetryAgent] = []

    def handler(request: httpx.Request) -> httpx.Response:
        sink_requests.append(request)
        return httpx.Response(204)

    http_client = httpx.Client(transport=httpx.MockTransport(handler))

    def build_test_agent() -> TelemetryAgent:
        if not agents:
            agents.append(
                build_agent(
                    _settings(),
                    sensor=FixedSensor(),
                    display=NullDisplay(),
                    client=http_client,
                )
            )
        return agents[0]

    def cache_clear() -> None:
        agents.clear()

    build_test_agent.cache_clear = cache_clear  # type: ignore[attr-defined]

    monkeypatch.setattr("app.main.build_default_agent", build_test_agent)
    monkeypatch.setattr("app.api.build_default_agent", build_test_agent)

    app = create_app()
    with TestClient(app) as client:
        yield client

    http_client.close()


def _poll_for_reading(client: TestClient, timeout: float = 5.0) -> dict:
    deadline = time.monotonic() + timeout
    last_payload: dict | None = None
    while time.monotonic() < deadline:
        response = client.get("/reading")
        assert response.status_code == 200
        last_payload = response.json()
        if last_payload["celsius"] is not None:
            return last_payload
        time.sleep(0.05)
    pytest.fail(f"No reading became available: {last_payload}")


def test_lifespan_starts_and_stops_default_agent(monkeypatch) -> None:
    monkeypatch.setenv("MONITOR_SENSOR", "simulated")
    monkeypatch.setenv("MONITOR_TIMER_ENABLED", "false")
    from settings import get_settings

    get_settings.cache_clear()
    build_default_agent.cache_clear()
    app = create_app()
    try:
        with TestClient(app) as client:
            agent_during = build_default_agent()
            assert agent_during.monitor.running is True
            assert client.get("/health").json() == {"status": "ok"}

        assert agent_during.monitor.running is False
        agent_after = build_default_agent()
        assert agent_after is not agent_during
        agent_after.shutdown()
    finally:
        build_default_agent.cache_clear()
        get_settings.cache_clear()


def test_reading_is_empty_before_first_sample(api_client: TestClient) -> None:
    response = api_client.get("/reading")

    assert response.status_code == 200
    assert response.json() == {"celsius": None, "timestamp": None}


def test_sample_then_read(api_client: TestClient, sink_requests) -> None:
    response = api_client.post("/sample")
    assert response.status_code == 202
    assert response.json()["device_id"] == DEVICE_ID

    payload = _poll_for_reading(api_client)

    assert payload["celsius"] == 24.5
    assert payload["timestamp"] is not None

    deadline = time.monotonic() + 5.0
    while not sink_requests and time.monotonic() < deadline:
        time.sleep(0.05)
    assert len(sink_requests) == 1
    assert sink_requests[0].url.params["db"] == "testdb"


def test_status_reports_cycle_count(api_client: TestClient) -> None:
    api_client.post("/sample")
    _poll_for_reading(api_client)

    response = api_client.get("/status")

    assert response.status_code == 200
    body = response.json()
    assert body["device_id"] == DEVICE_ID
    assert body["status"] == "idle"
    assert body["timer_enabled"] is False
    assert body["interval_ms"] == 5000
    assert body["cycles"] == 1
    assert body["reading"]["celsius"] == 24.5


def test_root_points_to_reading(api_client: TestClient) -> None:
    response = api_client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
