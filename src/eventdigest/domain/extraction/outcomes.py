"""Outcome values returned by each extraction step and the run report folded from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from eventdigest.domain.model import SourceKind

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from eventdigest.domain.model import CandidateEvent, EventRecord, TranslatedSource
    from eventdigest.domain.ports import ComparisonResult


@dataclass(slots=True, frozen=True, kw_only=True)
class ScanResult:
    """Sources in the trailing window that still need an extraction."""

    kind: SourceKind
    pending: tuple[TranslatedSource, ...] = ()
    scanned: int = 0
    skipped: int = 0
    failed: bool = False


@dataclass(slots=True, frozen=True, kw_only=True)
class ExtractionOutcome:
    source: TranslatedSource
    candidates: tuple[CandidateEvent, ...] = ()
    rejected: int = 0
    failed: bool = False
    error: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class MatchOutcome:
    record: EventRecord | None = None
    comparison: ComparisonResult | None = None
    comparisons: int = 0
    failures: int = 0


@dataclass(slots=True, frozen=True, kw_only=True)
class MergeResult:
    title: str
    date: str
    description: str
    merge_notes: str
    time: str | None = None
    location: str | None = None
    event_type: str | None = None
    succeeded: bool = True


@dataclass(slots=True, frozen=True)
class StoreWrite:
    """Result of persisting one record; ``found`` is False when the update matched nothing."""

    ok: bool
    found: bool = True


class CandidateStatus(StrEnum):
    CREATED = "created"
    MERGED = "merged"
    FAILED = "failed"


@dataclass(slots=True, frozen=True, kw_only=True)
class CandidateOutcome:
    status: CandidateStatus
    record_id: str | None = None
    persisted: bool = True
    oracle_calls: int = 0
    errors: int = 0


class SourceStatus(StrEnum):
    PROCESSED = "processed"
    FAILED = "failed"
    DEFERRED = "deferred"


@dataclass(slots=True, frozen=True, kw_only=True)
class SourceOutcome:
    source: TranslatedSource
    status: SourceStatus
    extraction: ExtractionOutcome | None = None
    candidates: tuple[CandidateOutcome, ...] = ()
    marked_processed: bool = False
    errors: int = 0

    @classmethod
    def deferred(cls, source: TranslatedSource) -> SourceOutcome:
        return cls(source=source, status=SourceStatus.DEFERRED)


@dataclass(slots=True)
class RunReport:
    """Aggregated counts for one extraction run."""

    started_at: datetime | None = None
    posts_scanned: int = 0
    messages_scanned: int = 0
    sources_skipped: int = 0
    sources_processed: int = 0
    sources_deferred: int = 0
    sources_failed: int = 0
    candidates_extracted: int = 0
    candidates_rejected: int = 0
    records_created: int = 0
    records_merged: int = 0
    records_updated: int = 0
    updates_missed: int = 0
    oracle_calls: int = 0
    errors: int = 0
    processed_post_ids: set[str] = field(default_factory=set)
    processed_message_ids: set[str] = field(default_factory=set)
    touched_event_ids: set[str] = field(default_factory=set)

    @classmethod
    def fold(
        cls,
        scans: Iterable[ScanResult],
        sources: Iterable[SourceOutcome],
        *,
        started_at: datetime | None = None,
        working_set_failed: bool = False,
    ) -> RunReport:
        report = cls(started_at=started_at, errors=1 if working_set_failed else 0)
        for scan in scans:
            if scan.kind is SourceKind.POST:
                report.posts_scanned += scan.scanned
            else:
                report.messages_scanned += scan.scanned
            report.sources_skipped += scan.skipped
            report.errors += 1 if scan.failed else 0
        for outcome in sources:
            report._add_source(outcome)
        return report

    def _add_source(self, outcome: SourceOutcome) -> None:
        self.errors += outcome.errors
        if outcome.status is SourceStatus.DEFERRED:
            self.sources_deferred += 1
            return
        extraction = outcome.extraction
        if extraction is not None:
            self.oracle_calls += 1
            self.candidates_extracted += len(extraction.candidates)
            self.candidates_rejected += extraction.rejected
        if outcome.status is SourceStatus.FAILED:
            self.sources_failed += 1
            return

        self.sources_processed += 1
        if outcome.marked_processed:
            ids = (
                self.processed_post_ids
                if outcome.source.kind is SourceKind.POST
                else self.processed_message_ids
            )
            ids.add(outcome.source.source_id)
        for candidate in outcome.candidates:
            self.oracle_calls += candidate.oracle_calls
            self.errors += candidate.errors
            if candidate.record_id is not None:
                self.touched_event_ids.add(candidate.record_id)
            if candidate.status is CandidateStatus.CREATED:
                self.records_created += 1
            elif candidate.status is CandidateStatus.MERGED:
                self.records_merged += 1
                if candidate.persisted:
                    self.records_updated += 1
                else:
                    self.updates_missed += 1

    @property
    def sources_scanned(self) -> int:
        return self.posts_scanned + self.messages_scanned

    def summary(self) -> str:
        return (
            f"scanned={self.sources_scanned} (posts={self.posts_scanned}, "
            f"messages={self.messages_scanned}), skipped={self.sources_skipped}, "
            f"processed={self.sources_processed}, deferred={self.sources_deferred}, "
            f"failed={self.sources_failed}, extracted={self.candidates_extracted}, "
            f"rejected={self.candidates_rejected}, created={self.records_created}, "
            f"merged={self.records_merged}, updated={self.records_updated}, "
            f"errors={self.errors}"
        )
