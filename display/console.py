from __future__ import annotations

import logging
from threading import Lock
from typing import Optional

import typer

from display.base import format_reading
from models.records import Reading

logger = logging.getLogger(__name__)


class LoggingDisplay:
    """Headless display that writes each render to the log."""

    def show(self, reading: Reading) -> None:
        logger.debug("Display: %s", format_reading(reading), extra={"celsius": reading.celsius})


class ConsoleDisplay:
    """Terminal display; only re-renders when the shown text changes."""

    def __init__(self, label: str = "Aquarium") -> None:
        self.label = label
        self._last_rendered: Optional[str] = None
        self._lock = Lock()

    def show(self, reading: Reading) -> None:
        text = f"{self.label}: {format_reading(reading)}"
        with self._lock:
            if text == self._last_rendered:
                return
            self._last_rendered = text
        color = typer.colors.CYAN if reading.is_complete else typer.colors.YELLOW
        typer.secho(text, fg=color)
