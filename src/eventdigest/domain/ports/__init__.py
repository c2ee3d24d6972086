"""Domain port definitions for adapters."""

from __future__ import annotations

from .oracle import ComparisonResult, EventOracle, ExtractedEvent, MergeProposal
from .persistence import (
    EventRepository,
    SnapshotRepository,
    SourceLedgerRepository,
    TranslatedSourceRepository,
)
from .unit_of_work import (
    DigestRepositories,
    DigestUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "ComparisonResult",
    "DigestRepositories",
    "DigestUnitOfWork",
    "EventOracle",
    "EventRepository",
    "ExtractedEvent",
    "MergeProposal",
    "RepositoryCollection",
    "SnapshotRepository",
    "SourceLedgerRepository",
    "TranslatedSourceRepository",
    "UnitOfWork",
]
