"""Build today's fresh digest from canonical event records."""

from __future__ import annotations

from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from eventdigest.domain.dates import parse_event_date
from eventdigest.domain.errors import DateParseError
from eventdigest.domain.model import Digest, NewsletterEvent

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from eventdigest.domain.model import EventRecord

log = getLogger(__name__)


def to_newsletter_event(record: EventRecord) -> NewsletterEvent:
    return NewsletterEvent(
        title=record.title,
        date=record.date,
        time=record.time,
        location=record.location,
        description=record.description,
    )


def within_horizon(record: EventRecord, today: datetime, horizon_days: int) -> bool:
    try:
        event_day = parse_event_date(record.date)
    except DateParseError:
        return True
    start = today.date()
    return start <= event_day <= start + timedelta(days=horizon_days)


def compose_fresh_digest(
    records: Iterable[EventRecord],
    today: datetime,
    *,
    sections: Digest | None = None,
    horizon_days: int = 14,
) -> Digest:
    """Combine upcoming canonical events with externally summarised sections.

    ``sections`` carries whatever the summarisation step produced for the other
    four sections; any upcoming events it lists are appended after the ones
    derived from the event store.
    """

    base = sections or Digest()
    upcoming = [
        to_newsletter_event(record)
        for record in records
        if within_horizon(record, today, horizon_days)
    ]
    log.info(f"Composed {len(upcoming)} upcoming event(s) within {horizon_days} days")
    return Digest(
        important_information=list(base.important_information),
        general_reminders=list(base.general_reminders),
        upcoming_events=[*upcoming, *base.upcoming_events],
        weekly_highlights=list(base.weekly_highlights),
        thread_summaries=list(base.thread_summaries),
    )
