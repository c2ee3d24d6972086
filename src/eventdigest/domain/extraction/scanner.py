"""Enumerate translated sources in the trailing window that were never extracted."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from eventdigest.domain.errors import StoreAccessError
from eventdigest.domain.model import SourceKind
from eventdigest.domain.time_windows import TimeWindow, utcnow

from .outcomes import ScanResult

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from eventdigest.domain.model import TranslatedSource
    from eventdigest.domain.ports import DigestUnitOfWork
    from eventdigest.domain.time_windows import Clock

log = getLogger(__name__)


def has_existing_extraction(
    source: TranslatedSource,
    *,
    unit_of_work_factory: Callable[[], DigestUnitOfWork],
    clock: Clock = utcnow,
) -> bool:
    """Cheap existence check; a failing store answers "not processed"."""

    try:
        with unit_of_work_factory() as uow:
            return uow.repositories.ledger.exists_for_source(
                source.kind, source.source_id, now=clock()
            )
    except StoreAccessError as exc:
        log.warning(f"Could not check extraction state of {source.label}: {exc}")
        return False


def scan_new_sources(
    kind: SourceKind,
    *,
    window_days: int,
    unit_of_work_factory: Callable[[], DigestUnitOfWork],
    clock: Clock = utcnow,
) -> ScanResult:
    """Return the sources of ``kind`` translated within the last ``window_days`` days.

    Sources that already went through a validated extraction are skipped before
    any oracle cost is incurred. A failing scan degrades to "no new sources".
    """

    since, until = TimeWindow.trailing_days(window_days).resolve(clock=clock)
    try:
        with unit_of_work_factory() as uow:
            sources = uow.repositories.sources.list_translated(kind, since=since, until=until)
    except StoreAccessError as exc:
        log.error(f"Scanning {kind} sources failed, treating as no new sources: {exc}")
        return ScanResult(kind=kind, failed=True)

    pending: list[TranslatedSource] = []
    skipped = 0
    for source in sources:
        if has_existing_extraction(source, unit_of_work_factory=unit_of_work_factory, clock=clock):
            skipped += 1
            continue
        pending.append(source)

    log.info(
        "Scanned %s %s sources since %s: %s pending, %s already processed",
        len(sources),
        kind,
        since,
        len(pending),
        skipped,
    )
    return ScanResult(kind=kind, pending=tuple(pending), scanned=len(sources), skipped=skipped)


def has_new_sources_since(
    since: datetime,
    *,
    unit_of_work_factory: Callable[[], DigestUnitOfWork],
) -> bool:
    """Count-only check for posts or messages translated after ``since``.

    A failing store answers "yes" so a digest is never skipped by accident.
    """

    try:
        with unit_of_work_factory() as uow:
            counts = {
                kind: uow.repositories.sources.count_translated_since(kind, since)
                for kind in SourceKind
            }
    except StoreAccessError as exc:
        log.warning(f"Could not count new sources since {since}, assuming there are some: {exc}")
        return True

    log.info(
        "New since %s: %s post(s), %s message(s)",
        since,
        counts[SourceKind.POST],
        counts[SourceKind.MESSAGE],
    )
    return any(counts.values())
