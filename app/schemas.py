"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from models.records import MonitorSnapshot, MonitorStatus, Reading


class ReadingResponse(BaseModel):
    """Latest reading held by the monitor; both fields are null before the first sample."""

    celsius: Optional[float] = Field(default=None, description="Degrees Celsius, one decimal.")
    timestamp: Optional[datetime] = Field(default=None, description="UTC instant of the sample.")

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingResponse":
        return cls(celsius=reading.celsius, timestamp=reading.timestamp)


class MonitorStatusResponse(BaseModel):
    """Sampling state exposed via the API."""

    device_id: str
    status: MonitorStatus
    interval_ms: int = Field(..., gt=0)
    timer_enabled: bool
    cycles: int = Field(..., ge=0, description="Completed sampling cycles.")
    reading: ReadingResponse

    @classmethod
    def from_snapshot(cls, snapshot: MonitorSnapshot) -> "MonitorStatusResponse":
        return cls(
            device_id=snapshot.device_id,
            status=snapshot.status,
            interval_ms=snapshot.interval_ms,
            timer_enabled=snapshot.timer_enabled,
            cycles=snapshot.cycles,
            reading=ReadingResponse.from_reading(snapshot.reading),
        )


class SampleAcceptedResponse(BaseModel):
    device_id: str
    detail: str = "Sampling cycle requested."
