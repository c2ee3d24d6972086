"""Tolerant parsing of the free-form dates and times found in extracted events."""

from __future__ import annotations

import re
from datetime import date, datetime, time, tzinfo

from dateutil import parser as date_parser

from .errors import DateParseError

_ISO_DAY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_CLOCK = re.compile(r"^(?P<hour>\d{1,2})(?:[:.](?P<minute>\d{2}))?(?::\d{2})?$")


def parse_event_date(value: str | None) -> date:
    """Return the calendar day of ``value``.

    ISO strings (``2025-10-25``, ``2025-10-25T09:00:00Z``) are read first, then
    textual variants such as ``October 25, 2025`` via dateutil.
    """

    stripped = (value or "").strip()
    if not stripped:
        raise DateParseError("Empty date")
    try:
        return date_parser.isoparse(stripped).date()
    except (ValueError, OverflowError):
        pass
    try:
        return date_parser.parse(stripped).date()
    except (ValueError, OverflowError) as exc:
        raise DateParseError(f"Invalid date format: {value}") from exc


def normalize_date(value: str | None) -> str:
    """Collapse a date string to ``YYYY-MM-DD`` for grouping.

    Strings that cannot be parsed compare by their trimmed text.
    """

    stripped = (value or "").strip()
    if _ISO_DAY.match(stripped):
        return stripped
    try:
        return parse_event_date(stripped).isoformat()
    except DateParseError:
        return stripped


def parse_event_time(value: str | None) -> time:
    """Parse ``14:00``, ``14:00:00``, ``2:00 PM``, ``9am`` or ``9.30`` into a time."""

    lowered = (value or "").strip().lower()
    if not lowered:
        raise DateParseError("Empty time")
    is_pm = re.search(r"p\.?m\.?$", lowered) is not None
    is_am = re.search(r"a\.?m\.?$", lowered) is not None
    clock = re.sub(r"\s*[ap]\.?m\.?$", "", lowered).strip()
    match = _CLOCK.match(clock)
    if match is None:
        raise DateParseError(f"Invalid time format: {value}")

    hour = int(match.group("hour"))
    minute = int(match.group("minute") or 0)
    if is_pm and hour != 12:
        hour += 12
    elif is_am and hour == 12:
        hour = 0
    if hour > 23 or minute > 59:
        raise DateParseError(f"Time out of range: {value}")
    return time(hour, minute)


def parse_event_datetime(day: str | None, clock: str | None, *, tz: tzinfo | None) -> datetime:
    """Combine a date string and a time string into one datetime in ``tz``."""

    return datetime.combine(parse_event_date(day), parse_event_time(clock), tzinfo=tz)


def normalize_title(title: str | None) -> str:
    if not title:
        return ""
    return " ".join(title.lower().split())


def normalize_text(value: str | None) -> str:
    return (value or "").lower().strip()


__all__ = [
    "normalize_date",
    "normalize_text",
    "normalize_title",
    "parse_event_date",
    "parse_event_datetime",
    "parse_event_time",
]
