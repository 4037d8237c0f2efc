from __future__ import annotations

from typing import Protocol


class TemperatureSensor(Protocol):
    """Capability that returns the raw lines a sensor reports for a device.

    Implementations raise ``SensorUnavailable`` when the device cannot be read.
    """

    def read(self, device_id: str) -> tuple[str, ...]: ...
