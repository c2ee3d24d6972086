from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from eventdigest.adapters.sqlalchemy import (
    SqlAlchemySnapshotRepository,
    SqlAlchemyTranslatedSourceRepository,
)
from eventdigest.app import (
    extract_events,
    generate_daily_digest,
    import_sources,
    purge_expired,
    show_snapshot,
)
from eventdigest.config import PipelineConfig
from eventdigest.domain.digest import LookupStatus
from eventdigest.domain.errors import StoreAccessError
from eventdigest.domain.model import Digest, SourceKind, TranslatedSource
from tests.helpers.events import REFERENCE_NOW, make_record, make_source
from tests.helpers.oracle import FakeOracle, always_same, extracted

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from eventdigest.domain.ports import DigestUnitOfWork
    from eventdigest.domain.time_windows import Clock

type UnitOfWorkFactory = Callable[[], DigestUnitOfWork]

PIPELINE = PipelineConfig(window_days=14, horizon_days=14, run_budget_seconds=600)
NEXT_DAY = REFERENCE_NOW + timedelta(days=1)


def _make_clock(reference: datetime) -> Clock:
    def _clock() -> datetime:
        return reference

    return _clock


def _seed_sources(factory: UnitOfWorkFactory, *sources: TranslatedSource) -> None:
    with factory() as uow:
        for source in sources:
            uow.repositories.sources.add(source)
        uow.commit()


def test_first_run_bootstraps_snapshot(sqlite_unit_of_work: UnitOfWorkFactory) -> None:
    post = make_source("10", at=REFERENCE_NOW - timedelta(hours=2))
    _seed_sources(sqlite_unit_of_work, post)
    oracle = FakeOracle(extractions={post.label: [extracted(time="09:00")]})

    result = generate_daily_digest(
        oracle=oracle,
        unit_of_work_factory=sqlite_unit_of_work,
        pipeline=PIPELINE,
        sections=Digest(general_reminders=["Bring indoor shoes"]),
        clock=_make_clock(REFERENCE_NOW),
    )

    assert result.previous.status is LookupStatus.ABSENT
    snapshot = result.snapshot
    assert snapshot.snapshot_date == date(2025, 10, 18)
    assert [event.title for event in snapshot.digest.upcoming_events] == ["Zoo Trip"]
    assert snapshot.digest.upcoming_events[0].is_new is True
    assert snapshot.digest.general_reminders == ["Bring indoor shoes"]
    assert snapshot.processing_stats.posts_processed == 1
    assert snapshot.processing_stats.errors == 0
    stored = show_snapshot(date(2025, 10, 18), unit_of_work_factory=sqlite_unit_of_work)
    assert stored.snapshot == snapshot


def test_next_day_merges_with_previous_snapshot(sqlite_unit_of_work: UnitOfWorkFactory) -> None:
    post = make_source("10", at=REFERENCE_NOW - timedelta(hours=2))
    _seed_sources(sqlite_unit_of_work, post)
    generate_daily_digest(
        oracle=FakeOracle(extractions={post.label: [extracted(time="09:00")]}),
        unit_of_work_factory=sqlite_unit_of_work,
        pipeline=PIPELINE,
        clock=_make_clock(REFERENCE_NOW),
    )

    message = make_source("msg-7", kind=SourceKind.MESSAGE, at=NEXT_DAY - timedelta(hours=1))
    _seed_sources(sqlite_unit_of_work, message)
    oracle = FakeOracle(
        extractions={message.label: [extracted("Visit to zoo", time="10:00")]},
        comparator=always_same,
    )

    result = generate_daily_digest(
        oracle=oracle,
        unit_of_work_factory=sqlite_unit_of_work,
        pipeline=PIPELINE,
        clock=_make_clock(NEXT_DAY),
    )

    assert result.previous.status is LookupStatus.FOUND
    assert oracle.count("extract") == 1
    events = result.snapshot.digest.upcoming_events
    assert len(events) == 1
    assert events[0].time == "10:00"
    assert events[0].is_new is False
    assert events[0].is_updated is True
    assert events[0].changes == ["Time changed from 09:00 to 10:00"]
    assert result.snapshot.processed_item_ids.message_ids == {"msg-7"}


def test_unreadable_previous_snapshot_counts_as_error(
    sqlite_unit_of_work: UnitOfWorkFactory,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def unreadable(*_args: object, **_kwargs: object) -> None:
        raise StoreAccessError("corrupt snapshot")

    monkeypatch.setattr(SqlAlchemySnapshotRepository, "get", unreadable)

    result = generate_daily_digest(
        oracle=FakeOracle(),
        unit_of_work_factory=sqlite_unit_of_work,
        pipeline=PIPELINE,
        sections=Digest(weekly_highlights=["Pumpkin carving"]),
        clock=_make_clock(REFERENCE_NOW),
    )

    assert result.previous.failed is True
    assert result.snapshot.processing_stats.errors == 1
    assert result.snapshot.digest.weekly_highlights == ["Pumpkin carving"]


def test_extract_events_only_touches_event_store(sqlite_unit_of_work: UnitOfWorkFactory) -> None:
    post = make_source("10", at=REFERENCE_NOW - timedelta(hours=2))
    _seed_sources(sqlite_unit_of_work, post)

    report = extract_events(
        oracle=FakeOracle(extractions={post.label: [extracted()]}),
        unit_of_work_factory=sqlite_unit_of_work,
        pipeline=PIPELINE,
        clock=_make_clock(REFERENCE_NOW),
    )

    assert report.records_created == 1
    lookup = show_snapshot(date(2025, 10, 18), unit_of_work_factory=sqlite_unit_of_work)
    assert lookup.status is LookupStatus.ABSENT


def test_purge_expired_reports_counts(sqlite_unit_of_work: UnitOfWorkFactory) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.events.create_event(
            make_record(record_id="event-stale", now=REFERENCE_NOW - timedelta(days=90))
        )
        uow.repositories.events.create_event(make_record(record_id="event-fresh"))
        uow.commit()

    result = purge_expired(unit_of_work_factory=sqlite_unit_of_work, now=REFERENCE_NOW)

    assert result.events == 1
    assert result.ledger_entries == 0
    assert result.snapshots == 0


def test_import_sources_stores_json_lines(
    sqlite_unit_of_work: UnitOfWorkFactory, tmp_path: Path
) -> None:
    path = tmp_path / "sources.jsonl"
    path.write_text(
        '{"kind": "post", "sourceId": "10", "text": "Zoo trip", '
        '"sourceTimestamp": "2025-10-17T09:00:00Z"}\n'
        '{"kind": "message", "sourceId": "m1", "text": "See you there", '
        '"sourceTimestamp": "2025-10-17T10:00:00Z", "threadId": "t-1"}\n',
        encoding="utf-8",
    )

    count = import_sources(
        path, unit_of_work_factory=sqlite_unit_of_work, clock=_make_clock(REFERENCE_NOW)
    )

    assert count == 2
    with sqlite_unit_of_work() as uow:
        messages = uow.repositories.sources.list_translated(SourceKind.MESSAGE)
    assert [source.thread_id for source in messages] == ["t-1"]
    assert messages[0].translated_at == REFERENCE_NOW


def _bootstrap(factory: UnitOfWorkFactory) -> None:
    post = make_source("10", at=REFERENCE_NOW - timedelta(hours=2))
    _seed_sources(factory, post)
    generate_daily_digest(
        oracle=FakeOracle(extractions={post.label: [extracted(time="09:00")]}),
        unit_of_work_factory=factory,
        pipeline=PIPELINE,
        clock=_make_clock(REFERENCE_NOW),
    )


def test_nothing_new_since_previous_snapshot_skips_generation(
    sqlite_unit_of_work: UnitOfWorkFactory,
) -> None:
    _bootstrap(sqlite_unit_of_work)
    oracle = FakeOracle()

    result = generate_daily_digest(
        oracle=oracle,
        unit_of_work_factory=sqlite_unit_of_work,
        pipeline=PIPELINE,
        clock=_make_clock(NEXT_DAY),
    )

    assert result.skipped is True
    assert result.snapshot.snapshot_date == date(2025, 10, 18)
    assert oracle.calls == []
    lookup = show_snapshot(date(2025, 10, 19), unit_of_work_factory=sqlite_unit_of_work)
    assert lookup.status is LookupStatus.ABSENT


def test_generate_if_nothing_new_builds_digest_anyway(
    sqlite_unit_of_work: UnitOfWorkFactory,
) -> None:
    _bootstrap(sqlite_unit_of_work)
    pipeline = replace(PIPELINE, generate_if_nothing_new=True)

    result = generate_daily_digest(
        oracle=FakeOracle(),
        unit_of_work_factory=sqlite_unit_of_work,
        pipeline=pipeline,
        clock=_make_clock(NEXT_DAY),
    )

    assert result.skipped is False
    assert result.snapshot.snapshot_date == date(2025, 10, 19)
    assert [event.title for event in result.snapshot.digest.upcoming_events] == ["Zoo Trip"]
    lookup = show_snapshot(date(2025, 10, 19), unit_of_work_factory=sqlite_unit_of_work)
    assert lookup.status is LookupStatus.FOUND


def test_full_refresh_ignores_nothing_new_check(sqlite_unit_of_work: UnitOfWorkFactory) -> None:
    _bootstrap(sqlite_unit_of_work)

    result = generate_daily_digest(
        oracle=FakeOracle(),
        unit_of_work_factory=sqlite_unit_of_work,
        pipeline=PIPELINE,
        incremental_mode=False,
        clock=_make_clock(NEXT_DAY),
    )

    assert result.skipped is False
    assert result.snapshot.digest.upcoming_events[0].is_new is True


def test_failing_new_content_count_still_generates(
    sqlite_unit_of_work: UnitOfWorkFactory,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _bootstrap(sqlite_unit_of_work)

    def broken(*_args: object, **_kwargs: object) -> int:
        raise StoreAccessError("database is locked")

    monkeypatch.setattr(SqlAlchemyTranslatedSourceRepository, "count_translated_since", broken)

    result = generate_daily_digest(
        oracle=FakeOracle(),
        unit_of_work_factory=sqlite_unit_of_work,
        pipeline=PIPELINE,
        clock=_make_clock(NEXT_DAY),
    )

    assert result.skipped is False
    assert result.snapshot.snapshot_date == date(2025, 10, 19)
