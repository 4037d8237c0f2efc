"""Parser for the two-line text a 1-Wire temperature sensor reports.

A healthy read looks like::

    72 01 4b 46 7f ff 0e 10 57 : crc=57 YES
    72 01 4b 46 7f ff 0e 10 57 t=23125

The first line ends with ``YES`` when the CRC matched. The second line carries
the temperature in milli-degrees Celsius after ``t=``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from models.records import Reading
from services.errors import MalformedReading, SensorNotReady

READY_MARKER = "YES"
TEMPERATURE_MARKER = "t="


def split_lines(lines: Sequence[str]) -> tuple[str, str]:
    if not lines:
        raise MalformedReading("Sensor returned no data.")
    line1 = lines[0]
    line2 = lines[1] if len(lines) > 1 else ""
    return line1, line2


def parse_temperature_line(line: str) -> float:
    """Return degrees Celsius, rounded to one decimal place."""
    _, marker, payload = line.partition(TEMPERATURE_MARKER)
    if not marker:
        raise MalformedReading(f"Temperature marker {TEMPERATURE_MARKER!r} missing from {line!r}.")
    tokens = payload.split(maxsplit=1)
    token = tokens[0] if tokens else ""
    try:
        millidegrees = int(token)
    except ValueError as exc:
        raise MalformedReading(f"Invalid temperature payload {token!r}.") from exc
    return round(millidegrees / 1000, 1)


def parse_raw_reading(lines: Sequence[str], timestamp: datetime) -> Reading:
    line1, line2 = split_lines(lines)
    if not line1.rstrip().endswith(READY_MARKER):
        raise SensorNotReady("Got NO from sensor when reading temperature.")
    return Reading(celsius=parse_temperature_line(line2), timestamp=timestamp)
