"""Port for the text-generation oracle that extracts, compares and merges events."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from eventdigest.domain.model import Confidence

if TYPE_CHECKING:
    from eventdigest.domain.model import CandidateEvent, EventRecord, TranslatedSource


@dataclass(slots=True, frozen=True, kw_only=True)
class ExtractedEvent:
    """One event exactly as proposed by the oracle, before client-side validation."""

    title: str | None = None
    description: str | None = None
    date: str | None = None
    time: str | None = None
    location: str | None = None
    event_type: str | None = None
    confidence: str | None = None


@dataclass(slots=True, frozen=True)
class ComparisonResult:
    is_same_event: bool
    confidence: Confidence
    reason: str

    @property
    def is_actionable(self) -> bool:
        """Only a non-low-confidence "same" verdict may trigger a merge."""

        return self.is_same_event and self.confidence is not Confidence.LOW


@dataclass(slots=True, frozen=True, kw_only=True)
class MergeProposal:
    """Merged fields as proposed by the oracle; the merge resolver validates them."""

    title: str | None = None
    date: str | None = None
    time: str | None = None
    location: str | None = None
    description: str | None = None
    event_type: str | None = None
    merge_notes: str | None = None


@runtime_checkable
class EventOracle(Protocol):
    """Extraction, comparison and merge capability of any text-generation provider.

    Implementations raise ``OracleInvocationError`` when the provider cannot be
    reached and ``MalformedOracleResponse`` when its reply has the wrong shape.
    """

    @property
    def model_id(self) -> str: ...

    async def extract(self, source: TranslatedSource) -> list[ExtractedEvent]: ...

    async def compare(self, candidate: CandidateEvent, record: EventRecord) -> ComparisonResult: ...

    async def merge(self, record: EventRecord, candidate: CandidateEvent) -> MergeProposal: ...


__all__ = ["ComparisonResult", "EventOracle", "ExtractedEvent", "MergeProposal"]
