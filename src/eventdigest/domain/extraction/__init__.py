"""Event extraction, semantic deduplication and merging."""

from __future__ import annotations

from .candidates import build_candidates, extract_candidates, to_candidate
from .matcher import COMPARISON_FAILED_REASON, SemanticMatcher, same_day_records
from .merge import MERGE_FAILED_NOTE, MergeResolver, merge_update, resolve_merge
from .outcomes import (
    CandidateOutcome,
    CandidateStatus,
    ExtractionOutcome,
    MatchOutcome,
    MergeResult,
    RunReport,
    ScanResult,
    SourceOutcome,
    SourceStatus,
    StoreWrite,
)
from .runner import ExtractionRunner, RunBudget, run_extraction
from .scanner import has_existing_extraction, has_new_sources_since, scan_new_sources
from .working_set import EventWorkingSet

__all__ = [
    "COMPARISON_FAILED_REASON",
    "MERGE_FAILED_NOTE",
    "CandidateOutcome",
    "CandidateStatus",
    "EventWorkingSet",
    "ExtractionOutcome",
    "ExtractionRunner",
    "MatchOutcome",
    "MergeResolver",
    "MergeResult",
    "RunBudget",
    "RunReport",
    "ScanResult",
    "SemanticMatcher",
    "SourceOutcome",
    "SourceStatus",
    "StoreWrite",
    "build_candidates",
    "extract_candidates",
    "has_existing_extraction",
    "has_new_sources_since",
    "merge_update",
    "resolve_merge",
    "run_extraction",
    "same_day_records",
    "scan_new_sources",
    "to_candidate",
]
