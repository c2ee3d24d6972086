from __future__ import annotations

from datetime import UTC, date, datetime, time

import pytest

from eventdigest.domain.dates import (
    normalize_date,
    normalize_title,
    parse_event_date,
    parse_event_datetime,
    parse_event_time,
)
from eventdigest.domain.errors import DateParseError


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2025-10-25", date(2025, 10, 25)),
        ("2025-10-25T09:00:00Z", date(2025, 10, 25)),
        ("October 25, 2025", date(2025, 10, 25)),
        (" 2025-10-25 ", date(2025, 10, 25)),
    ],
)
def test_parse_event_date_accepts_iso_and_textual_dates(raw: str, expected: date) -> None:
    assert parse_event_date(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", None, "sometime next spring"])
def test_parse_event_date_rejects_unparseable_values(raw: str | None) -> None:
    with pytest.raises(DateParseError):
        parse_event_date(raw)


def test_date_parse_error_is_a_value_error() -> None:
    with pytest.raises(ValueError, match="Invalid date format"):
        parse_event_date("whenever")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("14:00", time(14, 0)),
        ("14:00:00", time(14, 0)),
        ("2:00 PM", time(14, 0)),
        ("9am", time(9, 0)),
        ("12:30 am", time(0, 30)),
        ("12 pm", time(12, 0)),
        ("9.30", time(9, 30)),
    ],
)
def test_parse_event_time_handles_twelve_and_twenty_four_hour_formats(
    raw: str, expected: time
) -> None:
    assert parse_event_time(raw) == expected


@pytest.mark.parametrize("raw", ["", "after lunch", "25:00", "10:75"])
def test_parse_event_time_rejects_invalid_values(raw: str) -> None:
    with pytest.raises(DateParseError):
        parse_event_time(raw)


def test_parse_event_datetime_combines_day_and_time_in_zone() -> None:
    moment = parse_event_datetime("2025-10-25", "9am", tz=UTC)

    assert moment == datetime(2025, 10, 25, 9, 0, tzinfo=UTC)


def test_normalize_date_groups_equivalent_spellings() -> None:
    assert normalize_date("2025-10-25") == "2025-10-25"
    assert normalize_date("October 25, 2025") == "2025-10-25"
    assert normalize_date("2025-10-25T18:00:00") == "2025-10-25"
    assert normalize_date("  next week ") == "next week"


def test_normalize_title_lowercases_and_collapses_whitespace() -> None:
    assert normalize_title("  Zoo   Trip ") == "zoo trip"
    assert normalize_title(None) == ""
