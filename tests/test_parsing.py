from __future__ import annotations

from datetime import datetime, timezone

import pytest

from models.records import Reading
from services.errors import MalformedReading, SensorNotReady
from services.parsing import parse_raw_reading, parse_temperature_line

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
READY = "72 01 4b 46 7f ff 0e 10 57 : crc=57 YES"
NOT_READY = "72 01 4b 46 7f ff 0e 10 57 : crc=00 NO"


def test_parse_two_line_reading() -> None:
    reading = parse_raw_reading((READY, "72 01 4b 46 7f ff 0e 10 57 t=27300"), NOW)

    assert reading == Reading(celsius=27.3, timestamp=NOW)


def test_parse_ignores_text_after_temperature() -> None:
    reading = parse_raw_reading(("... YES", "... t=27300 ..."), NOW)

    assert reading.celsius == 27.3


def test_parse_rounds_to_one_decimal() -> None:
    reading = parse_raw_reading((READY, "aa t=23187"), NOW)

    assert reading.celsius == 23.2


def test_parse_negative_temperature() -> None:
    reading = parse_raw_reading((READY, "ff t=-1187"), NOW)

    assert reading.celsius == -1.2


def test_parse_ignores_trailing_whitespace_on_ready_line() -> None:
    reading = parse_raw_reading((READY + " \n", "t=20000"), NOW)

    assert reading.celsius == 20.0


def test_parse_rejects_missing_ready_marker() -> None:
    with pytest.raises(SensorNotReady):
        parse_raw_reading((NOT_READY, "aa t=27300"), NOW)


def test_single_line_is_treated_as_empty_second_line() -> None:
    with pytest.raises(MalformedReading):
        parse_raw_reading((READY,), NOW)


def test_single_line_not_ready_reports_not_ready() -> None:
    with pytest.raises(SensorNotReady):
        parse_raw_reading((NOT_READY,), NOW)


def test_empty_input_is_malformed() -> None:
    with pytest.raises(MalformedReading):
        parse_raw_reading((), NOW)


@pytest.mark.parametrize(
    "line",
    [
        "72 01 4b 46 7f ff 0e 10 57",
        "72 01 4b 46 7f ff 0e 10 57 t=",
        "72 01 4b 46 7f ff 0e 10 57 t=abc",
    ],
)
def test_parse_rejects_malformed_temperature_line(line: str) -> None:
    with pytest.raises(MalformedReading):
        parse_temperature_line(line)
