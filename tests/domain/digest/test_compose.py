from __future__ import annotations

from datetime import UTC, datetime

from eventdigest.domain.digest import compose_fresh_digest, within_horizon
from eventdigest.domain.model import Digest, NewsletterEvent, ThreadSummary
from tests.helpers.events import make_record

TODAY = datetime(2025, 10, 21, 7, 0, tzinfo=UTC)


def test_within_horizon_bounds_are_inclusive() -> None:
    assert within_horizon(make_record(date="2025-10-21"), TODAY, 14)
    assert within_horizon(make_record(date="2025-11-04"), TODAY, 14)
    assert not within_horizon(make_record(date="2025-11-05"), TODAY, 14)
    assert not within_horizon(make_record(date="2025-10-20"), TODAY, 14)


def test_within_horizon_keeps_unparseable_dates() -> None:
    assert within_horizon(make_record(date="after the holidays"), TODAY, 14)


def test_compose_places_store_events_before_summarised_ones() -> None:
    sections = Digest(
        general_reminders=["Bring indoor shoes"],
        upcoming_events=[
            NewsletterEvent(title="Bake sale", date="2025-10-23", description="Cakes")
        ],
        thread_summaries=[ThreadSummary(title="Trip planning", summary="Volunteers found")],
    )
    records = [make_record(), make_record("Winter concert", date="2025-12-15")]

    digest = compose_fresh_digest(records, TODAY, sections=sections, horizon_days=14)

    assert [event.title for event in digest.upcoming_events] == ["Zoo Trip", "Bake sale"]
    trip = digest.upcoming_events[0]
    assert trip.time == "09:00"
    assert trip.location == "Copenhagen Zoo"
    assert digest.general_reminders == ["Bring indoor shoes"]
    assert digest.thread_summaries == sections.thread_summaries


def test_compose_without_sections_only_has_events() -> None:
    digest = compose_fresh_digest([make_record()], TODAY)

    assert len(digest.upcoming_events) == 1
    assert digest.important_information == []
    assert digest.weekly_highlights == []
