"""Loading and saving daily snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from eventdigest.domain.errors import StoreAccessError
from eventdigest.domain.model import (
    SNAPSHOT_RETENTION_DAYS,
    NewsletterSnapshot,
    ProcessedItemIds,
    ProcessingStats,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import date, datetime

    from eventdigest.domain.extraction import RunReport
    from eventdigest.domain.model import Digest
    from eventdigest.domain.ports import DigestUnitOfWork

log = getLogger(__name__)


class LookupStatus(StrEnum):
    FOUND = "found"
    ABSENT = "absent"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class SnapshotLookup:
    """Result of reading a snapshot; a failed read is distinct from a missing one."""

    status: LookupStatus
    snapshot: NewsletterSnapshot | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.status is LookupStatus.FAILED


def load_snapshot(
    snapshot_date: date,
    *,
    unit_of_work_factory: Callable[[], DigestUnitOfWork],
) -> SnapshotLookup:
    try:
        with unit_of_work_factory() as uow:
            snapshot = uow.repositories.snapshots.get(snapshot_date)
    except StoreAccessError as exc:
        log.error(f"Reading snapshot for {snapshot_date} failed: {exc}")
        return SnapshotLookup(LookupStatus.FAILED, error=str(exc))
    if snapshot is None:
        return SnapshotLookup(LookupStatus.ABSENT)
    return SnapshotLookup(LookupStatus.FOUND, snapshot=snapshot)


def load_previous_snapshot(
    today: date,
    *,
    unit_of_work_factory: Callable[[], DigestUnitOfWork],
) -> SnapshotLookup:
    return load_snapshot(today - timedelta(days=1), unit_of_work_factory=unit_of_work_factory)


def build_snapshot(
    digest: Digest,
    *,
    generated_at: datetime,
    report: RunReport | None = None,
    extra_errors: int = 0,
) -> NewsletterSnapshot:
    processed = ProcessedItemIds()
    stats = ProcessingStats(errors=extra_errors)
    if report is not None:
        processed = ProcessedItemIds(
            post_ids=set(report.processed_post_ids),
            message_ids=set(report.processed_message_ids),
            event_ids=set(report.touched_event_ids),
        )
        stats = ProcessingStats(
            posts_processed=len(report.processed_post_ids),
            messages_processed=len(report.processed_message_ids),
            events_extracted=report.candidates_extracted,
            oracle_calls=report.oracle_calls,
            errors=report.errors + extra_errors,
        )
    return NewsletterSnapshot(
        snapshot_date=generated_at.date(),
        generated_at=generated_at,
        digest=digest,
        expires_at=generated_at + timedelta(days=SNAPSHOT_RETENTION_DAYS),
        processed_item_ids=processed,
        processing_stats=stats,
    )


def save_snapshot(
    snapshot: NewsletterSnapshot,
    *,
    unit_of_work_factory: Callable[[], DigestUnitOfWork],
) -> None:
    """Overwrite the snapshot for its day; store errors propagate."""

    with unit_of_work_factory() as uow:
        uow.repositories.snapshots.save(snapshot)
        uow.commit()
    log.info(f"Saved snapshot for {snapshot.snapshot_date}")
