"""Decide whether a candidate is the same real-world event as an existing record."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final

from eventdigest.domain.dates import normalize_date
from eventdigest.domain.errors import MalformedOracleResponse, OracleInvocationError
from eventdigest.domain.model import Confidence
from eventdigest.domain.ports import ComparisonResult

from .outcomes import MatchOutcome

if TYPE_CHECKING:
    from collections.abc import Iterable

    from eventdigest.domain.model import CandidateEvent, EventRecord
    from eventdigest.domain.ports import EventOracle

log = getLogger(__name__)

COMPARISON_FAILED_REASON: Final[str] = "Comparison failed due to error"


def same_day_records(
    candidate: CandidateEvent,
    records: Iterable[EventRecord],
) -> list[EventRecord]:
    """Only records on the candidate's normalized calendar day are ever compared.

    An event that moves by more than a day between mentions therefore ends up as
    a second record.
    """

    candidate_day = normalize_date(candidate.date)
    return [record for record in records if normalize_date(record.date) == candidate_day]


@dataclass(slots=True)
class SemanticMatcher:
    oracle: EventOracle

    async def are_events_the_same(
        self,
        candidate: CandidateEvent,
        record: EventRecord,
    ) -> ComparisonResult:
        result, _ = await self._compare(candidate, record)
        return result

    async def find_match(
        self,
        candidate: CandidateEvent,
        records: Iterable[EventRecord],
    ) -> MatchOutcome:
        """Return the first same-day record the oracle confirms with at least medium confidence."""

        candidates_pool = same_day_records(candidate, records)
        comparisons = 0
        failures = 0
        for record in candidates_pool:
            result, failed = await self._compare(candidate, record)
            comparisons += 1
            failures += int(failed)
            if result.is_actionable:
                log.info(
                    f"Matched {candidate.title!r} to {record.id} "
                    f"({result.confidence}): {result.reason}"
                )
                return MatchOutcome(
                    record=record,
                    comparison=result,
                    comparisons=comparisons,
                    failures=failures,
                )
            if result.is_same_event:
                log.debug(f"Ignoring low-confidence match of {candidate.title!r} to {record.id}")

        log.debug(
            "No match for %r among %s same-day record(s)", candidate.title, len(candidates_pool)
        )
        return MatchOutcome(comparisons=comparisons, failures=failures)

    async def _compare(
        self,
        candidate: CandidateEvent,
        record: EventRecord,
    ) -> tuple[ComparisonResult, bool]:
        try:
            return await self.oracle.compare(candidate, record), False
        except (OracleInvocationError, MalformedOracleResponse) as exc:
            log.warning(f"Comparing {candidate.title!r} with {record.id} failed: {exc}")
            return ComparisonResult(False, Confidence.LOW, COMPARISON_FAILED_REASON), True
