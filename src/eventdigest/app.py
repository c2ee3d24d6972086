"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from contextlib import AsyncExitStack
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from eventdigest.adapters.documents import iter_translated_sources
from eventdigest.adapters.oracle import HttpEventOracle, build_http_oracle
from eventdigest.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyDigestUnitOfWork,
    is_started,
    startup,
)
from eventdigest.config import PipelineConfig, get_pipeline_config
from eventdigest.domain.digest import (
    SnapshotLookup,
    build_snapshot,
    compose_fresh_digest,
    load_previous_snapshot,
    load_snapshot,
    merge_snapshots,
    save_snapshot,
)
from eventdigest.domain.errors import StoreAccessError
from eventdigest.domain.extraction import (
    ExtractionRunner,
    RunBudget,
    RunReport,
    has_new_sources_since,
)
from eventdigest.domain.ports.unit_of_work import DigestUnitOfWork
from eventdigest.domain.time_windows import utcnow

if TYPE_CHECKING:
    from datetime import date, datetime
    from pathlib import Path

    from eventdigest.domain.model import Digest, EventRecord, NewsletterSnapshot
    from eventdigest.domain.ports import EventOracle
    from eventdigest.domain.time_windows import Clock

UnitOfWorkFactory = Callable[[], DigestUnitOfWork]


log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PurgeResult:
    events: int = 0
    ledger_entries: int = 0
    snapshots: int = 0


@dataclass(slots=True, frozen=True)
class DailyDigestResult:
    snapshot: NewsletterSnapshot
    report: RunReport
    previous: SnapshotLookup
    purged: PurgeResult
    skipped: bool = False


def _resolve_unit_of_work(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return SqlAlchemyDigestUnitOfWork


async def _run_extraction(
    runner: ExtractionRunner,
    *,
    window_days: int,
    owned_oracle: HttpEventOracle | None,
) -> RunReport:
    async with AsyncExitStack() as stack:
        if owned_oracle is not None:
            await stack.enter_async_context(owned_oracle)
        return await runner.run(window_days=window_days)


def extract_events(
    *,
    oracle: EventOracle | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    pipeline: PipelineConfig | None = None,
    clock: Clock = utcnow,
) -> RunReport:
    """Run extraction over new posts and messages without touching the digest."""

    config = pipeline or get_pipeline_config()
    effective_uow = _resolve_unit_of_work(unit_of_work_factory)
    owned_oracle: HttpEventOracle | None = None
    if oracle is None:
        owned_oracle = build_http_oracle()
        oracle = owned_oracle
    runner = ExtractionRunner(
        oracle=oracle,
        unit_of_work_factory=effective_uow,
        clock=clock,
        budget=RunBudget(config.run_budget_seconds),
    )
    log.info(
        "Starting extraction: window_days=%s, budget=%ss",
        config.window_days,
        config.run_budget_seconds,
    )
    return asyncio.run(
        _run_extraction(runner, window_days=config.window_days, owned_oracle=owned_oracle)
    )


def _load_current_events(
    unit_of_work_factory: UnitOfWorkFactory,
    *,
    now: datetime,
) -> tuple[list[EventRecord], bool]:
    try:
        with unit_of_work_factory() as uow:
            return uow.repositories.events.get_all_events(now=now), False
    except StoreAccessError as exc:
        log.error(f"Loading events for the digest failed, composing without them: {exc}")
        return [], True


def purge_expired(
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    now: datetime,
) -> PurgeResult:
    """Delete expired events, ledger entries and snapshots in one unit of work."""

    try:
        with unit_of_work_factory() as uow:
            result = PurgeResult(
                events=uow.repositories.events.purge_expired(now),
                ledger_entries=uow.repositories.ledger.purge_expired(now),
                snapshots=uow.repositories.snapshots.purge_expired(now),
            )
            uow.commit()
    except StoreAccessError as exc:
        log.error(f"Purging expired records failed: {exc}")
        return PurgeResult()
    log.info(
        "Purged %s event(s), %s ledger entr(ies), %s snapshot(s)",
        result.events,
        result.ledger_entries,
        result.snapshots,
    )
    return result


def generate_daily_digest(
    *,
    oracle: EventOracle | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    pipeline: PipelineConfig | None = None,
    sections: Digest | None = None,
    incremental_mode: bool = True,
    clock: Clock = utcnow,
) -> DailyDigestResult:
    """Extract new events, merge today's digest with yesterday's and save it."""

    config = pipeline or get_pipeline_config()
    effective_uow = _resolve_unit_of_work(unit_of_work_factory)
    today = clock().astimezone(config.tzinfo)

    previous = load_previous_snapshot(today.date(), unit_of_work_factory=effective_uow)
    if previous.failed:
        log.warning("Previous snapshot unreadable, falling back to a full refresh")

    last = previous.snapshot
    if (
        last is not None
        and incremental_mode
        and not config.generate_if_nothing_new
        and not has_new_sources_since(last.generated_at, unit_of_work_factory=effective_uow)
    ):
        log.info(
            f"Nothing new since the {last.snapshot_date} digest (generated {last.generated_at}), "
            "skipping generation"
        )
        return DailyDigestResult(
            snapshot=last,
            report=RunReport(),
            previous=previous,
            purged=PurgeResult(),
            skipped=True,
        )

    report = extract_events(
        oracle=oracle,
        unit_of_work_factory=effective_uow,
        pipeline=config,
        clock=clock,
    )

    now = clock()
    records, records_failed = _load_current_events(effective_uow, now=now)
    fresh = compose_fresh_digest(
        records,
        today,
        sections=sections,
        horizon_days=config.horizon_days,
    )
    merged = merge_snapshots(
        previous.snapshot,
        fresh,
        today,
        incremental_mode=incremental_mode,
    )
    snapshot = build_snapshot(
        merged,
        generated_at=now.astimezone(config.tzinfo),
        report=report,
        extra_errors=int(previous.failed) + int(records_failed),
    )
    save_snapshot(snapshot, unit_of_work_factory=effective_uow)
    purged = purge_expired(unit_of_work_factory=effective_uow, now=now)

    log.info(
        f"Daily digest for {snapshot.snapshot_date}: "
        f"{len(merged.upcoming_events)} upcoming event(s), "
        f"{len(merged.important_information)} important item(s), "
        f"errors={snapshot.processing_stats.errors}"
    )
    return DailyDigestResult(snapshot=snapshot, report=report, previous=previous, purged=purged)


def import_sources(
    path: Path,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    clock: Clock = utcnow,
) -> int:
    """Store translated posts and messages from a JSON-lines file."""

    effective_uow = _resolve_unit_of_work(unit_of_work_factory)
    sources = list(iter_translated_sources(path, received_at=clock()))
    with effective_uow() as uow:
        for source in sources:
            uow.repositories.sources.add(source)
        uow.commit()
    log.info(f"Imported {len(sources)} translated source(s) from {path}")
    return len(sources)


def show_snapshot(
    snapshot_date: date,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> SnapshotLookup:
    return load_snapshot(
        snapshot_date, unit_of_work_factory=_resolve_unit_of_work(unit_of_work_factory)
    )
