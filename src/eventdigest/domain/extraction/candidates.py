"""Turn raw oracle proposals into validated candidate events."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from eventdigest.domain.errors import MalformedOracleResponse, OracleInvocationError
from eventdigest.domain.model import CandidateEvent, Confidence, EventType

from .outcomes import ExtractionOutcome

if TYPE_CHECKING:
    from collections.abc import Iterable

    from eventdigest.domain.model import TranslatedSource
    from eventdigest.domain.ports import EventOracle, ExtractedEvent

log = getLogger(__name__)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _confidence(value: str | None) -> Confidence:
    try:
        return Confidence((value or "").strip().lower())
    except ValueError:
        return Confidence.LOW


def _event_type(value: str | None) -> str | None:
    cleaned = _clean(value)
    if cleaned is None:
        return None
    lowered = cleaned.lower()
    return lowered if lowered in EventType else EventType.OTHER.value


def to_candidate(source: TranslatedSource, proposal: ExtractedEvent) -> CandidateEvent | None:
    """Validate one proposal; anything without a title, description and date is rejected."""

    title = _clean(proposal.title)
    description = _clean(proposal.description)
    event_date = _clean(proposal.date)
    if title is None or description is None or event_date is None:
        return None
    return CandidateEvent(
        title=title,
        description=description,
        date=event_date,
        time=_clean(proposal.time),
        location=_clean(proposal.location),
        event_type=_event_type(proposal.event_type),
        confidence=_confidence(proposal.confidence),
        source_kind=source.kind,
        source_id=source.source_id,
        source_timestamp=source.source_timestamp,
        thread_id=source.thread_id,
    )


def build_candidates(
    source: TranslatedSource,
    proposals: Iterable[ExtractedEvent],
) -> tuple[tuple[CandidateEvent, ...], int]:
    candidates: list[CandidateEvent] = []
    rejected = 0
    for proposal in proposals:
        candidate = to_candidate(source, proposal)
        if candidate is None:
            rejected += 1
            log.debug(f"Rejected incomplete event from {source.label}: {proposal!r}")
            continue
        candidates.append(candidate)
    return tuple(candidates), rejected


async def extract_candidates(oracle: EventOracle, source: TranslatedSource) -> ExtractionOutcome:
    """Run the extraction oracle on one source.

    A failed call yields ``failed=True`` so the source is retried next run, while a
    valid empty list is a successful "zero events" extraction.
    """

    try:
        proposals = await oracle.extract(source)
    except (OracleInvocationError, MalformedOracleResponse) as exc:
        log.warning(f"Extraction failed for {source.label}: {exc}")
        return ExtractionOutcome(source=source, failed=True, error=str(exc))

    candidates, rejected = build_candidates(source, proposals)
    if rejected:
        log.info(f"Rejected {rejected} incomplete event(s) from {source.label}")
    return ExtractionOutcome(source=source, candidates=candidates, rejected=rejected)
