"""Best-effort delivery of readings to an InfluxDB-compatible write endpoint."""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import httpx

from models.records import Reading
from services.errors import DeliveryFailure, IncompleteReading
from settings import CLIENT_NAME, CLIENT_VERSION

logger = logging.getLogger(__name__)

USER_AGENT = f"{CLIENT_NAME}/{CLIENT_VERSION}"
FIELD_NAME = "celsius"


@dataclass(frozen=True)
class SinkConfig:
    url: str
    db: str
    measurement: str
    credentials: Optional[str] = None
    timeout: float = 10.0

    def auth(self) -> Optional[httpx.BasicAuth]:
        """Build Basic auth from ``user:pass``; a missing colon means an empty password."""
        if not self.credentials:
            return None
        username, _, password = self.credentials.partition(":")
        return httpx.BasicAuth(username, password)


def _escape_measurement(name: str) -> str:
    return name.replace(",", r"\,").replace(" ", r"\ ")


def _to_nanoseconds(timestamp: datetime) -> int:
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    delta = timestamp - datetime(1970, 1, 1, tzinfo=timezone.utc)
    return (delta.days * 86_400 + delta.seconds) * 1_000_000_000 + delta.microseconds * 1_000


def build_line(measurement: str, reading: Reading) -> str:
    """Render one reading in InfluxDB line protocol."""
    if not reading.is_complete:
        raise IncompleteReading("Reading is missing a value or a timestamp.")
    return (
        f"{_escape_measurement(measurement)} "
        f"{FIELD_NAME}={float(reading.celsius)} "
        f"{_to_nanoseconds(reading.timestamp)}"
    )


class TemperatureReporter:
    """Validates readings and writes complete ones to the time-series sink.

    The reporter keeps no reading state. ``handle_reading`` never blocks on
    the network; each write runs on the worker pool and failures are logged.
    """

    def __init__(
        self,
        config: SinkConfig,
        client: Optional[httpx.Client] = None,
        workers: int = 4,
    ) -> None:
        self.config = config
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=config.timeout)
        self._auth = config.auth()
        self.executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="reporter")

    @classmethod
    def start(cls, config: SinkConfig, **kwargs) -> "TemperatureReporter":
        return cls(config, **kwargs)

    def handle_reading(self, reading: Reading) -> Optional[Future[None]]:
        """Queue a write for ``reading``; incomplete readings are dropped."""
        if not reading.is_complete:
            logger.debug("Dropping incomplete reading", extra={"celsius": reading.celsius})
            return None
        return self.executor.submit(self._deliver_logged, reading)

    def deliver(self, reading: Reading) -> None:
        """Issue a single write and raise ``DeliveryFailure`` unless the sink answers 204."""
        body = build_line(self.config.measurement, reading)
        headers = {"User-Agent": USER_AGENT, "Content-Type": "text/plain; charset=utf-8"}
        try:
            response = self._client.post(
                f"{self.config.url.rstrip('/')}/write",
                params={"db": self.config.db},
                content=body.encode("utf-8"),
                headers=headers,
                auth=self._auth,
                timeout=self.config.timeout,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise DeliveryFailure(f"Sink unreachable: {exc}") from exc

        if response.status_code != httpx.codes.NO_CONTENT:
            detail = response.text.strip() or "no detail provided."
            raise DeliveryFailure(
                f"Sink rejected write with status {response.status_code}: {detail}",
                status_code=response.status_code,
            )

    def shutdown(self) -> None:
        self.executor.shutdown(wait=True, cancel_futures=True)
        if self._owns_client:
            self._client.close()

    def _deliver_logged(self, reading: Reading) -> None:
        start_time = time.perf_counter()
        try:
            self.deliver(reading)
        except DeliveryFailure as exc:
            logger.error(
                "Failed to report temperature: %s",
                exc,
                extra={"status_code": exc.status_code, "measurement": self.config.measurement},
            )
            return
        except Exception:  # noqa: BLE001 - delivery is best-effort
            logger.exception(
                "Unexpected error while reporting temperature",
                extra={"measurement": self.config.measurement},
            )
            return
        logger.debug(
            "Reported temperature",
            extra={
                "celsius": reading.celsius,
                "measurement": self.config.measurement,
                "elapsed_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
