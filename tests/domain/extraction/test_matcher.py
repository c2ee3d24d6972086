from __future__ import annotations

import asyncio

from eventdigest.domain.errors import OracleInvocationError
from eventdigest.domain.extraction import (
    COMPARISON_FAILED_REASON,
    SemanticMatcher,
    same_day_records,
)
from eventdigest.domain.model import CandidateEvent, Confidence, EventRecord
from eventdigest.domain.ports import ComparisonResult
from tests.helpers.events import make_candidate, make_record
from tests.helpers.oracle import FakeOracle, always_same


def test_same_day_records_compares_normalized_dates() -> None:
    spelled = make_record(date="October 25, 2025", record_id="event-a")
    other_day = make_record(date="2025-10-26", record_id="event-b")

    pool = same_day_records(make_candidate(date="2025-10-25"), [spelled, other_day])

    assert pool == [spelled]


def test_find_match_returns_first_confident_match() -> None:
    first = make_record(record_id="event-a")
    second = make_record(record_id="event-b")
    oracle = FakeOracle(comparator=always_same)

    outcome = asyncio.run(SemanticMatcher(oracle).find_match(make_candidate(), [first, second]))

    assert outcome.record is first
    assert outcome.comparisons == 1
    assert oracle.count("compare") == 1


def test_find_match_skips_other_days_without_oracle_calls() -> None:
    oracle = FakeOracle(comparator=always_same)

    outcome = asyncio.run(
        SemanticMatcher(oracle).find_match(
            make_candidate(date="2025-10-24"), [make_record(date="2025-10-25")]
        )
    )

    assert outcome.record is None
    assert oracle.calls == []


def test_low_confidence_same_verdict_never_matches() -> None:
    def unsure(_candidate: CandidateEvent, _record: EventRecord) -> ComparisonResult:
        return ComparisonResult(True, Confidence.LOW, "Possibly the same")

    oracle = FakeOracle(comparator=unsure)

    outcome = asyncio.run(SemanticMatcher(oracle).find_match(make_candidate(), [make_record()]))

    assert outcome.record is None
    assert outcome.comparisons == 1


def test_comparison_failure_degrades_to_no_match() -> None:
    def broken(_candidate: CandidateEvent, _record: EventRecord) -> ComparisonResult:
        raise OracleInvocationError("throttled")

    matcher = SemanticMatcher(FakeOracle(comparator=broken))
    record = make_record()

    result = asyncio.run(matcher.are_events_the_same(make_candidate(), record))
    outcome = asyncio.run(matcher.find_match(make_candidate(), [record]))

    assert result == ComparisonResult(False, Confidence.LOW, COMPARISON_FAILED_REASON)
    assert outcome.record is None
    assert outcome.failures == 1
