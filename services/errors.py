"""Failure kinds raised while sampling and reporting temperatures."""

from __future__ import annotations

from typing import Optional


class TelemetryError(Exception):
    """Base class for all agent failures. None of them are fatal."""


class SensorUnavailable(TelemetryError):
    """The sensor driver could not produce raw text for the device."""


class SensorNotReady(TelemetryError):
    """The first line did not carry the ready marker (CRC check failed)."""


class MalformedReading(TelemetryError):
    """The raw text lacked the temperature marker or a numeric payload."""


class IncompleteReading(TelemetryError):
    """A reading without a value or a timestamp reached the reporter."""


class DeliveryFailure(TelemetryError):
    """The time-series sink rejected the write or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

