from __future__ import annotations

import random
from threading import Lock
from typing import Optional


class SimulatedSensor:
    """Random-walk sensor that speaks the same two-line text as a DS18B20.

    Useful for running the agent on a machine without a 1-Wire bus.
    """

    def __init__(
        self,
        start_celsius: float = 25.0,
        step: float = 0.05,
        seed: Optional[int] = None,
    ) -> None:
        self._celsius = start_celsius
        self._step = step
        self._random = random.Random(seed)
        self._lock = Lock()

    def read(self, device_id: str) -> tuple[str, ...]:
        with self._lock:
            self._celsius += self._random.uniform(-self._step, self._step)
            millidegrees = int(round(self._celsius * 1000))
        raw = "72 01 4b 46 7f ff 0e 10 57"
        return (f"{raw} : crc=57 YES", f"{raw} t={millidegrees}")
