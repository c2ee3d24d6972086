from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from eventdigest.adapters.sqlalchemy import SqlAlchemySnapshotRepository
from eventdigest.domain.digest import (
    LookupStatus,
    build_snapshot,
    load_previous_snapshot,
    save_snapshot,
)
from eventdigest.domain.errors import StoreAccessError
from eventdigest.domain.extraction import RunReport
from eventdigest.domain.model import Digest

if TYPE_CHECKING:
    from collections.abc import Callable

    from eventdigest.domain.ports import DigestUnitOfWork

GENERATED_AT = datetime(2025, 10, 20, 6, 30, tzinfo=UTC)


def test_build_snapshot_folds_run_report_into_stats() -> None:
    report = RunReport(
        candidates_extracted=4,
        oracle_calls=9,
        errors=1,
        processed_post_ids={"10", "11"},
        processed_message_ids={"m1"},
        touched_event_ids={"event-a"},
    )

    snapshot = build_snapshot(
        Digest(general_reminders=["Bring indoor shoes"]),
        generated_at=GENERATED_AT,
        report=report,
        extra_errors=1,
    )

    assert snapshot.snapshot_date == date(2025, 10, 20)
    assert snapshot.expires_at == GENERATED_AT + timedelta(days=60)
    assert snapshot.processing_stats.posts_processed == 2
    assert snapshot.processing_stats.messages_processed == 1
    assert snapshot.processing_stats.events_extracted == 4
    assert snapshot.processing_stats.oracle_calls == 9
    assert snapshot.processing_stats.errors == 2
    assert snapshot.processed_item_ids.event_ids == {"event-a"}


def test_build_snapshot_without_report_keeps_extra_errors() -> None:
    snapshot = build_snapshot(Digest(), generated_at=GENERATED_AT, extra_errors=1)

    assert snapshot.processing_stats.errors == 1
    assert snapshot.processed_item_ids.post_ids == set()


def test_previous_snapshot_is_found_the_next_day(
    sqlite_unit_of_work: Callable[[], DigestUnitOfWork],
) -> None:
    snapshot = build_snapshot(Digest(weekly_highlights=["Pumpkins"]), generated_at=GENERATED_AT)
    save_snapshot(snapshot, unit_of_work_factory=sqlite_unit_of_work)

    found = load_previous_snapshot(date(2025, 10, 21), unit_of_work_factory=sqlite_unit_of_work)
    missing = load_previous_snapshot(date(2025, 10, 22), unit_of_work_factory=sqlite_unit_of_work)

    assert found.status is LookupStatus.FOUND
    assert found.snapshot is not None
    assert found.snapshot.digest.weekly_highlights == ["Pumpkins"]
    assert missing.status is LookupStatus.ABSENT
    assert missing.failed is False


def test_failed_read_is_distinct_from_missing_snapshot(
    sqlite_unit_of_work: Callable[[], DigestUnitOfWork],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def unreadable(*_args: object, **_kwargs: object) -> None:
        raise StoreAccessError("corrupt snapshot")

    monkeypatch.setattr(SqlAlchemySnapshotRepository, "get", unreadable)

    lookup = load_previous_snapshot(date(2025, 10, 21), unit_of_work_factory=sqlite_unit_of_work)

    assert lookup.failed is True
    assert lookup.snapshot is None
    assert lookup.error == "corrupt snapshot"
