"""Merge yesterday's digest with today's freshly computed sections.

Each section follows its own rule:

* important information is unioned, flagged new when its description was not
  shown before, and dropped once its per-type retention window has passed;
* general reminders are unioned, deduplicated and capped to the latest 20;
* upcoming events drop anything already in the past, are matched by title and
  date to detect changes, deduplicated by detail and sorted by date;
* weekly highlights and thread summaries always come from the fresh digest.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Final

from eventdigest.domain.dates import (
    normalize_text,
    normalize_title,
    parse_event_date,
    parse_event_datetime,
)
from eventdigest.domain.errors import DateParseError
from eventdigest.domain.model import Digest, ImportantInfoType

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from eventdigest.domain.model import ImportantInfoItem, NewsletterEvent, NewsletterSnapshot

log = getLogger(__name__)

RETENTION_DAYS: Final[Mapping[str, int]] = {
    ImportantInfoType.HEALTH_ALERT: 7,
    ImportantInfoType.FAMILY_MENTION: 14,
    ImportantInfoType.DEADLINE: 7,
    ImportantInfoType.POLICY_CHANGE: 30,
    ImportantInfoType.URGENT_REQUEST: 3,
}
DEFAULT_RETENTION_DAYS: Final[int] = 7
MAX_REMINDERS: Final[int] = 20
MAX_HIGHLIGHTS: Final[int] = 10


def _in_zone(value: datetime, today: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=today.tzinfo)
    if today.tzinfo is None:
        return value
    return value.astimezone(today.tzinfo)


def _event_key(event: NewsletterEvent) -> tuple[str, str]:
    return normalize_title(event.title), event.date


# Important information ------------------------------------------------------


def days_since(created_at: datetime | None, today: datetime) -> int:
    """Whole calendar days between ``created_at`` and ``today`` in today's timezone."""

    if created_at is None:
        return 0
    return (today.date() - _in_zone(created_at, today).date()).days


def is_retained(item: ImportantInfoItem, today: datetime) -> bool:
    if item.type == ImportantInfoType.DEADLINE and item.deadline:
        try:
            return parse_event_date(item.deadline) >= today.date()
        except DateParseError:
            log.debug(f"Unparseable deadline {item.deadline!r}, using default retention")
    window = RETENTION_DAYS.get(item.type, DEFAULT_RETENTION_DAYS)
    return days_since(item.created_at, today) <= window


def merge_important_info(
    previous: Iterable[ImportantInfoItem],
    fresh: Iterable[ImportantInfoItem],
    today: datetime,
) -> list[ImportantInfoItem]:
    previous_items = [replace(item, is_new=False) for item in previous]
    seen_before = {normalize_text(item.description) for item in previous_items}
    fresh_items = [
        replace(
            item,
            created_at=item.created_at or today,
            is_new=normalize_text(item.description) not in seen_before,
        )
        for item in fresh
    ]

    merged: list[ImportantInfoItem] = []
    seen: set[str] = set()
    for item in [*previous_items, *fresh_items]:
        if not is_retained(item, today):
            continue
        key = normalize_text(item.description)
        if key in seen:
            continue
        seen.add(key)
        merged.append(item)
    return merged


# General reminders ----------------------------------------------------------


def merge_reminders(previous: Iterable[str], fresh: Iterable[str]) -> list[str]:
    unique: list[str] = []
    seen: set[str] = set()
    for reminder in [*previous, *fresh]:
        key = normalize_text(reminder)
        if key in seen:
            continue
        seen.add(key)
        unique.append(reminder)
    return unique[-MAX_REMINDERS:]


# Upcoming events ------------------------------------------------------------


def is_upcoming(
    event: NewsletterEvent,
    now: datetime,
    *,
    include_today_without_time: bool = False,
) -> bool:
    """Hybrid past-event test.

    With a parseable time the full moment is compared against ``now``. Without a
    time (or with one that does not parse) only future days count, since an
    untimed event dated today may already be over. Unparseable dates are kept.
    """

    try:
        event_day = parse_event_date(event.date)
    except DateParseError:
        log.debug(f"Could not parse date of {event.title!r}, keeping it")
        return True

    today = now.date()
    if event.time:
        try:
            moment = parse_event_datetime(event.date, event.time, tz=now.tzinfo)
        except DateParseError:
            return event_day > today
        return moment > now
    if include_today_without_time:
        return event_day >= today
    return event_day > today


def filter_past_events(
    events: Iterable[NewsletterEvent],
    now: datetime,
    *,
    include_today_without_time: bool = False,
) -> list[NewsletterEvent]:
    kept: list[NewsletterEvent] = []
    for event in events:
        if is_upcoming(event, now, include_today_without_time=include_today_without_time):
            kept.append(event)
        else:
            log.debug(f"Dropping past event {event.title!r} on {event.date}")
    return kept


def detect_event_changes(old: NewsletterEvent, new: NewsletterEvent) -> list[str]:
    changes: list[str] = []

    if old.time != new.time:
        if old.time and new.time:
            changes.append(f"Time changed from {old.time} to {new.time}")
        elif new.time:
            changes.append(f"Time added: {new.time}")
        elif old.time:
            changes.append(f"Time removed (was {old.time})")

    if old.location != new.location:
        if old.location and new.location:
            changes.append(f'Location changed from "{old.location}" to "{new.location}"')
        elif new.location:
            changes.append(f"Location added: {new.location}")

    if old.description and new.description:
        old_text = normalize_text(old.description)
        new_text = normalize_text(new.description)
        if old_text != new_text and old_text not in new_text and new_text not in old_text:
            changes.append("Description updated")

    if new.requirements and ",".join(old.requirements) != ",".join(new.requirements):
        changes.append("Requirements updated")

    return changes


def deduplicate_events(events: Iterable[NewsletterEvent]) -> list[NewsletterEvent]:
    """Keep one event per (title, date); the more detailed one wins, the first one on ties."""

    kept: dict[tuple[str, str], NewsletterEvent] = {}
    for event in events:
        key = _event_key(event)
        existing = kept.get(key)
        if existing is None or event.detail_score() > existing.detail_score():
            kept[key] = event
    return list(kept.values())


def _sort_key(event: NewsletterEvent) -> date:
    try:
        return parse_event_date(event.date)
    except DateParseError:
        return date.max


def merge_events(
    previous: Iterable[NewsletterEvent],
    fresh: Iterable[NewsletterEvent],
    now: datetime,
) -> list[NewsletterEvent]:
    previous_list = list(previous)
    fresh_list = list(fresh)
    previous_kept = [
        replace(event, is_new=False, is_updated=False, changes=[])
        for event in filter_past_events(previous_list, now)
    ]
    fresh_kept = filter_past_events(fresh_list, now)
    log.info(
        "Filtered past events: previous %s -> %s, fresh %s -> %s",
        len(previous_list),
        len(previous_kept),
        len(fresh_list),
        len(fresh_kept),
    )

    by_key = {_event_key(event): event for event in reversed(previous_kept)}
    flagged: list[NewsletterEvent] = []
    for event in fresh_kept:
        existing = by_key.get(_event_key(event))
        if existing is None:
            flagged.append(replace(event, is_new=True, is_updated=False, changes=[]))
            continue
        changes = detect_event_changes(existing, event)
        flagged.append(replace(event, is_new=False, is_updated=bool(changes), changes=changes))

    return sorted(deduplicate_events([*previous_kept, *flagged]), key=_sort_key)


# Snapshot -------------------------------------------------------------------


def stamp_fresh_digest(fresh: Digest, today: datetime) -> Digest:
    """Bootstrap or full refresh: everything fresh is new and timestamped."""

    return Digest(
        important_information=[
            replace(item, created_at=item.created_at or today, is_new=True)
            for item in fresh.important_information
        ],
        general_reminders=list(fresh.general_reminders),
        upcoming_events=[replace(event, is_new=True) for event in fresh.upcoming_events],
        weekly_highlights=list(fresh.weekly_highlights),
        thread_summaries=list(fresh.thread_summaries),
    )


def merge_snapshots(
    previous: NewsletterSnapshot | None,
    fresh: Digest,
    today: datetime,
    *,
    incremental_mode: bool = True,
) -> Digest:
    """Combine ``previous`` (read-only) with ``fresh`` as of ``today``.

    The result is both what gets rendered today and tomorrow's previous snapshot.
    """

    if previous is None:
        log.info("No previous snapshot, using fresh digest as-is")
        return stamp_fresh_digest(fresh, today)
    if not incremental_mode:
        log.info("Full refresh requested, ignoring previous snapshot")
        return stamp_fresh_digest(fresh, today)

    before = previous.digest
    merged = Digest(
        important_information=merge_important_info(
            before.important_information, fresh.important_information, today
        ),
        general_reminders=merge_reminders(before.general_reminders, fresh.general_reminders),
        upcoming_events=merge_events(before.upcoming_events, fresh.upcoming_events, today),
        weekly_highlights=list(fresh.weekly_highlights[:MAX_HIGHLIGHTS]),
        thread_summaries=list(fresh.thread_summaries),
    )
    log.info(
        "Snapshot merge complete: info %s+%s -> %s, events %s+%s -> %s, reminders %s+%s -> %s",
        len(before.important_information),
        len(fresh.important_information),
        len(merged.important_information),
        len(before.upcoming_events),
        len(fresh.upcoming_events),
        len(merged.upcoming_events),
        len(before.general_reminders),
        len(fresh.general_reminders),
        len(merged.general_reminders),
    )
    return merged
