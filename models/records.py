"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


@dataclass(frozen=True, slots=True)
class Reading:
    """A temperature measurement paired with the instant it was taken.

    The empty ``Reading()`` stands for "no successful sample yet".
    """

    celsius: Optional[float] = None
    timestamp: Optional[datetime] = None

    @property
    def is_complete(self) -> bool:
        return self.celsius is not None and self.timestamp is not None


@dataclass(slots=True)
class MonitorState:
    """Mutable state owned by a single monitor thread."""

    device_id: str
    current_reading: Reading = field(default_factory=Reading)


class MonitorStatus(str, Enum):
    """Sampling lifecycle states."""

    idle = "idle"
    sampling = "sampling"
    stopped = "stopped"


@dataclass(frozen=True, slots=True)
class MonitorSnapshot:
    device_id: str
    status: MonitorStatus
    interval_ms: int
    timer_enabled: bool
    cycles: int
    reading: Reading
