"""Extraction run: scan, extract, match, merge or create, and report."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from eventdigest.domain.errors import StoreAccessError
from eventdigest.domain.model import EventRecord, ProcessedSource, SourceKind, event_expiry
from eventdigest.domain.time_windows import utcnow

from .candidates import extract_candidates
from .matcher import SemanticMatcher
from .merge import MergeResolver, merge_update
from .outcomes import (
    CandidateOutcome,
    CandidateStatus,
    RunReport,
    SourceOutcome,
    SourceStatus,
)
from .scanner import scan_new_sources
from .working_set import EventWorkingSet

if TYPE_CHECKING:
    from collections.abc import Callable

    from eventdigest.domain.model import CandidateEvent, TranslatedSource
    from eventdigest.domain.ports import DigestUnitOfWork, EventOracle
    from eventdigest.domain.time_windows import Clock

    from .outcomes import ScanResult

log = getLogger(__name__)


@dataclass(slots=True)
class RunBudget:
    """Wall-clock allowance for one run, measured from construction."""

    seconds: float
    monotonic: Callable[[], float] = time.monotonic
    _started: float = field(init=False)

    def __post_init__(self) -> None:
        self._started = self.monotonic()

    @property
    def remaining(self) -> float:
        return max(0.0, self.seconds - (self.monotonic() - self._started))

    def exhausted(self) -> bool:
        return self.remaining <= 0.0


@dataclass(slots=True)
class ExtractionRunner:
    """Process posts and messages as two concurrent lanes over one shared working set."""

    oracle: EventOracle
    unit_of_work_factory: Callable[[], DigestUnitOfWork]
    clock: Clock = utcnow
    budget: RunBudget | None = None

    async def run(self, *, window_days: int) -> RunReport:
        started_at = self.clock()
        working_set, load_failed = EventWorkingSet.load(
            unit_of_work_factory=self.unit_of_work_factory, now=started_at
        )
        scans = [
            scan_new_sources(
                kind,
                window_days=window_days,
                unit_of_work_factory=self.unit_of_work_factory,
                clock=self.clock,
            )
            for kind in (SourceKind.POST, SourceKind.MESSAGE)
        ]

        matcher = SemanticMatcher(self.oracle)
        resolver = MergeResolver(self.oracle)
        lanes = await asyncio.gather(
            *(self._run_lane(scan, working_set, matcher, resolver) for scan in scans)
        )

        report = RunReport.fold(
            scans,
            [outcome for lane in lanes for outcome in lane],
            started_at=started_at,
            working_set_failed=load_failed,
        )
        log.info(f"Extraction run finished: {report.summary()}")
        return report

    async def _run_lane(
        self,
        scan: ScanResult,
        working_set: EventWorkingSet,
        matcher: SemanticMatcher,
        resolver: MergeResolver,
    ) -> list[SourceOutcome]:
        outcomes: list[SourceOutcome] = []
        for source in scan.pending:
            if self.budget is not None and self.budget.exhausted():
                outcomes.append(SourceOutcome.deferred(source))
                continue
            outcomes.append(await self._process_source(source, working_set, matcher, resolver))

        deferred = sum(1 for outcome in outcomes if outcome.status is SourceStatus.DEFERRED)
        if deferred:
            log.warning(f"Run budget exhausted, deferred {deferred} {scan.kind} source(s)")
        return outcomes

    async def _process_source(
        self,
        source: TranslatedSource,
        working_set: EventWorkingSet,
        matcher: SemanticMatcher,
        resolver: MergeResolver,
    ) -> SourceOutcome:
        extraction = await extract_candidates(self.oracle, source)
        if extraction.failed:
            return SourceOutcome(
                source=source,
                status=SourceStatus.FAILED,
                extraction=extraction,
                errors=1,
            )

        candidate_outcomes: list[CandidateOutcome] = []
        for candidate in extraction.candidates:
            async with working_set.lock:
                candidate_outcomes.append(
                    await self._process_candidate(candidate, working_set, matcher, resolver)
                )

        errors = 0
        marked = False
        if any(outcome.status is CandidateStatus.FAILED for outcome in candidate_outcomes):
            log.warning(f"Not marking {source.label} processed after a failed store write")
        else:
            marked = self._mark_processed(source, len(extraction.candidates))
            errors += int(not marked)

        return SourceOutcome(
            source=source,
            status=SourceStatus.PROCESSED,
            extraction=extraction,
            candidates=tuple(candidate_outcomes),
            marked_processed=marked,
            errors=errors,
        )

    async def _process_candidate(
        self,
        candidate: CandidateEvent,
        working_set: EventWorkingSet,
        matcher: SemanticMatcher,
        resolver: MergeResolver,
    ) -> CandidateOutcome:
        match = await matcher.find_match(candidate, working_set.records)
        oracle_calls = match.comparisons
        errors = match.failures

        if match.record is None:
            record = EventRecord.from_candidate(
                candidate, now=self.clock(), model_id=self.oracle.model_id
            )
            write = working_set.create(record)
            if not write.ok:
                return CandidateOutcome(
                    status=CandidateStatus.FAILED,
                    oracle_calls=oracle_calls,
                    errors=errors + 1,
                )
            log.info(f"Created event {record.id} {record.title!r} on {record.date}")
            return CandidateOutcome(
                status=CandidateStatus.CREATED,
                record_id=record.id,
                oracle_calls=oracle_calls,
                errors=errors,
            )

        record = match.record
        result = await resolver.merge_events(record, candidate)
        oracle_calls += 1
        errors += int(not result.succeeded)

        target = record.merge_target
        fields = merge_update(record, candidate, result, now=self.clock())
        write = working_set.update(record, fields, collection=target)
        if not write.ok:
            return CandidateOutcome(
                status=CandidateStatus.FAILED,
                record_id=record.id,
                oracle_calls=oracle_calls,
                errors=errors + 1,
            )
        log.info(f"Merged {candidate.source_label} into {record.id}: {result.merge_notes}")
        return CandidateOutcome(
            status=CandidateStatus.MERGED,
            record_id=record.id,
            persisted=write.found,
            oracle_calls=oracle_calls,
            errors=errors,
        )

    def _mark_processed(self, source: TranslatedSource, events_found: int) -> bool:
        now = self.clock()
        entry = ProcessedSource(
            kind=source.kind,
            source_id=source.source_id,
            processed_at=now,
            events_found=events_found,
            expires_at=event_expiry(now),
        )
        try:
            with self.unit_of_work_factory() as uow:
                uow.repositories.ledger.mark_processed(entry)
                uow.commit()
        except StoreAccessError as exc:
            log.error(f"Marking {source.label} processed failed: {exc}")
            return False
        return True


def run_extraction(
    *,
    oracle: EventOracle,
    unit_of_work_factory: Callable[[], DigestUnitOfWork],
    window_days: int,
    clock: Clock = utcnow,
    budget: RunBudget | None = None,
) -> RunReport:
    """Synchronous entry point wrapping :class:`ExtractionRunner`."""

    runner = ExtractionRunner(
        oracle=oracle,
        unit_of_work_factory=unit_of_work_factory,
        clock=clock,
        budget=budget,
    )
    return asyncio.run(runner.run(window_days=window_days))
