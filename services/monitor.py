"""Periodic temperature sampling around a single state-owning thread.

The owner thread drains an inbox and is the only writer of ``MonitorState``.
Each sensor read runs on its own daemon thread and reports back through the
inbox, so a slow device never blocks timers, queries, fan-out or shutdown. The next timer is
armed only after the current cycle has been applied, which keeps at most one
read in flight.
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Protocol, Union

from display.base import Display
from models.records import MonitorSnapshot, MonitorState, MonitorStatus, Reading
from sensors.base import TemperatureSensor
from services.errors import MalformedReading, SensorNotReady, SensorUnavailable, TelemetryError
from services.parsing import parse_raw_reading

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 5 * 1_000


class ReadingHandler(Protocol):
    def handle_reading(self, reading: Reading) -> Any: ...


@dataclass(frozen=True)
class _Trigger:
    pass


@dataclass(frozen=True)
class _ReadCompleted:
    cycle: int
    outcome: Union[tuple[str, ...], TelemetryError]


@dataclass(frozen=True)
class _ReadTimedOut:
    cycle: int


@dataclass(frozen=True)
class _Call:
    fn: Callable[[], Any]
    reply: Future


@dataclass(frozen=True)
class _Stop:
    pass


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TemperatureMonitor:
    """Samples one sensor on a timer and fans each result out.

    ``start`` returns the monitor itself as the handle for later calls.
    With ``timer_enabled=False`` nothing is sampled unless ``trigger`` is
    called. ``read_timeout_ms`` bounds how long a cycle waits for the sensor;
    ``None`` waits forever.
    """

    def __init__(
        self,
        sensor: TemperatureSensor,
        display: Display,
        reporter: ReadingHandler,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        timer_enabled: bool = True,
        read_timeout_ms: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.sensor = sensor
        self.display = display
        self.reporter = reporter
        self.interval_ms = interval_ms
        self.timer_enabled = timer_enabled
        self.read_timeout_ms = read_timeout_ms
        self._clock = clock or _utc_now

        self._inbox: queue.Queue[object] = queue.Queue()
        self._renderer = ThreadPoolExecutor(max_workers=1, thread_name_prefix="display")
        self._lifecycle_lock = threading.Lock()
        self._owner: Optional[threading.Thread] = None
        self._stopping = False

        # Owner-thread state below.
        self._state: Optional[MonitorState] = None
        self._status = MonitorStatus.idle
        self._cycle = 0
        self._completed = 0
        self._in_flight: Optional[int] = None
        self._read_thread: Optional[threading.Thread] = None
        self._timer: Optional[threading.Timer] = None
        self._watchdog: Optional[threading.Timer] = None

    @property
    def running(self) -> bool:
        return self._owner is not None and self._owner.is_alive() and not self._stopping

    def start(self, device_id: str) -> "TemperatureMonitor":
        with self._lifecycle_lock:
            if self._owner is not None:
                raise RuntimeError("Monitor has already been started.")
            self._state = MonitorState(device_id=device_id)
            self._owner = threading.Thread(
                target=self._run, name=f"monitor-{device_id}", daemon=True
            )
            self._owner.start()
        return self

    def get_reading(self) -> Reading:
        """Return the latest reading; ``Reading()`` before the first success."""
        return self._call(lambda: self._state.current_reading)

    def snapshot(self) -> MonitorSnapshot:
        return self._call(self._build_snapshot)

    def trigger(self) -> None:
        """Request one sampling cycle now."""
        self._post(_Trigger())

    def stop(self, timeout: float = 5.0) -> None:
        with self._lifecycle_lock:
            owner = self._owner
            if owner is None or self._stopping:
                return
            self._stopping = True
            self._inbox.put(_Stop())
        owner.join(timeout)
        self._renderer.shutdown(wait=False, cancel_futures=True)

    def _post(self, message: object) -> None:
        self._inbox.put(message)

    def _call(self, fn: Callable[[], Any]) -> Any:
        reply: Future = Future()
        with self._lifecycle_lock:
            if self._owner is None or self._stopping:
                raise RuntimeError("Monitor is not running.")
            self._inbox.put(_Call(fn=fn, reply=reply))
        return reply.result()

    def _run(self) -> None:
        self._schedule(0)
        while True:
            message = self._inbox.get()
            if isinstance(message, _Stop):
                break
            try:
                self._handle(message)
            except Exception:  # noqa: BLE001 - one bad message must not end sampling
                logger.exception(
                    "Unhandled error in monitor loop", extra={"device_id": self._state.device_id}
                )
        self._cancel_timer()
        self._cancel_watchdog()
        self._status = MonitorStatus.stopped

    def _handle(self, message: object) -> None:
        if isinstance(message, _Trigger):
            self._on_trigger()
        elif isinstance(message, _ReadCompleted):
            self._on_read_completed(message)
        elif isinstance(message, _ReadTimedOut):
            self._on_read_timed_out(message)
        elif isinstance(message, _Call):
            try:
                message.reply.set_result(message.fn())
            except Exception as exc:  # noqa: BLE001 - surfaced to the caller
                message.reply.set_exception(exc)

    def _on_trigger(self) -> None:
        self._cancel_timer()
        if self._in_flight is not None:
            logger.warning(
                "Sensor read already in flight, ignoring trigger",
                extra={"device_id": self._state.device_id, "cycle": self._in_flight},
            )
            return
        if self._read_thread is not None and self._read_thread.is_alive():
            logger.warning(
                "Abandoned sensor read has not returned, skipping cycle",
                extra={"device_id": self._state.device_id, "cycle": self._cycle},
            )
            self._schedule()
            return

        self._cycle += 1
        cycle = self._cycle
        self._in_flight = cycle
        self._status = MonitorStatus.sampling
        self._read_thread = threading.Thread(
            target=self._read,
            args=(cycle, self._state.device_id),
            name=f"sensor-read-{cycle}",
            daemon=True,
        )
        self._read_thread.start()
        if self.read_timeout_ms is not None:
            self._watchdog = self._start_timer(self.read_timeout_ms, _ReadTimedOut(cycle))

    def _read(self, cycle: int, device_id: str) -> None:
        # Runs on the reader thread; must always report back.
        try:
            outcome: Union[tuple[str, ...], TelemetryError] = tuple(self.sensor.read(device_id))
        except TelemetryError as exc:
            outcome = exc
        except Exception as exc:  # noqa: BLE001 - driver bugs count as an unavailable sensor
            outcome = SensorUnavailable(f"Sensor driver failed: {exc!r}")
        self._post(_ReadCompleted(cycle=cycle, outcome=outcome))

    def _on_read_completed(self, message: _ReadCompleted) -> None:
        if message.cycle != self._in_flight:
            logger.warning(
                "Discarding sensor read from an abandoned cycle",
                extra={"device_id": self._state.device_id, "cycle": message.cycle},
            )
            return
        self._cancel_watchdog()
        self._complete_cycle(message.outcome)

    def _on_read_timed_out(self, message: _ReadTimedOut) -> None:
        if message.cycle != self._in_flight:
            return
        self._watchdog = None
        self._complete_cycle(
            SensorUnavailable(f"Sensor read timed out after {self.read_timeout_ms} ms.")
        )

    def _complete_cycle(self, outcome: Union[tuple[str, ...], TelemetryError]) -> None:
        state = self._state
        previous = state.current_reading
        self._in_flight = None

        if isinstance(outcome, TelemetryError):
            self._log_read_failure(outcome)
        else:
            try:
                reading = parse_raw_reading(outcome, self._clock())
            except (SensorNotReady, MalformedReading) as exc:
                self._log_read_failure(exc)
            else:
                state.current_reading = reading
                self._log_change(previous.celsius, reading.celsius)

        self._completed += 1
        self._status = MonitorStatus.idle
        self._fan_out(state.current_reading)
        self._schedule()

    def _fan_out(self, reading: Reading) -> None:
        render = self._renderer.submit(self.display.show, reading)
        render.add_done_callback(self._log_render_failure)
        try:
            self.reporter.handle_reading(reading)
        except Exception:  # noqa: BLE001 - reporting is best-effort
            logger.exception(
                "Reporter refused reading", extra={"device_id": self._state.device_id}
            )

    def _log_read_failure(self, exc: TelemetryError) -> None:
        logger.error(
            "Received error when reading temperature: %s",
            exc,
            extra={"device_id": self._state.device_id, "reason": type(exc).__name__},
        )

    def _log_change(self, old_celsius: Optional[float], new_celsius: Optional[float]) -> None:
        extra = {"device_id": self._state.device_id, "celsius": new_celsius}
        if old_celsius is None:
            logger.debug("Initial temperature reading: %s", new_celsius, extra=extra)
        elif old_celsius != new_celsius:
            extra["previous_celsius"] = old_celsius
            logger.debug("Temperature changed: %s -> %s", old_celsius, new_celsius, extra=extra)

    @staticmethod
    def _log_render_failure(future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Display failed to render reading", exc_info=exc)

    def _build_snapshot(self) -> MonitorSnapshot:
        return MonitorSnapshot(
            device_id=self._state.device_id,
            status=self._status,
            interval_ms=self.interval_ms,
            timer_enabled=self.timer_enabled,
            cycles=self._completed,
            reading=self._state.current_reading,
        )

    def _schedule(self, delay_ms: Optional[int] = None) -> None:
        if not self.timer_enabled:
            return
        self._cancel_timer()
        delay = self.interval_ms if delay_ms is None else delay_ms
        self._timer = self._start_timer(delay, _Trigger())

    def _start_timer(self, delay_ms: int, message: object) -> threading.Timer:
        timer = threading.Timer(delay_ms / 1000, self._post, args=(message,))
        timer.daemon = True
        timer.start()
        return timer

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _cancel_watchdog(self) -> None:
        if self._watchdog is not None:
            self._watchdog.cancel()
            self._watchdog = None
