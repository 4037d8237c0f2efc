from __future__ import annotations

from typing import Protocol

from models.records import Reading

PLACEHOLDER = "--.-"


class Display(Protocol):
    """Capability that renders the latest reading. Return values are ignored."""

    def show(self, reading: Reading) -> None: ...


def format_celsius(reading: Reading) -> str:
    if reading.celsius is None:
        return f"{PLACEHOLDER} C"
    return f"{reading.celsius:.1f} C"


def format_reading(reading: Reading) -> str:
    text = format_celsius(reading)
    if reading.timestamp is None:
        return text
    return f"{text} @ {reading.timestamp.strftime('%H:%M:%S')}"
