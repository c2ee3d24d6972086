"""Combine a matched candidate into its canonical record."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final

from eventdigest.domain.errors import MalformedOracleResponse, OracleInvocationError
from eventdigest.domain.model import SourceKind, event_expiry

from .outcomes import MergeResult

if TYPE_CHECKING:
    from datetime import datetime

    from eventdigest.domain.model import CandidateEvent, EventRecord
    from eventdigest.domain.ports import EventOracle, MergeProposal

log = getLogger(__name__)

MERGE_FAILED_NOTE: Final[str] = "Merge failed, kept original information"


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _prefer_candidate(candidate_value: str | None, existing_value: str | None) -> str | None:
    return _clean(candidate_value) or _clean(existing_value)


def unchanged_result(record: EventRecord) -> MergeResult:
    return MergeResult(
        title=record.title,
        date=record.date,
        time=record.time,
        location=record.location,
        description=record.description,
        event_type=record.event_type,
        merge_notes=MERGE_FAILED_NOTE,
        succeeded=False,
    )


def resolve_merge(
    record: EventRecord,
    candidate: CandidateEvent,
    proposal: MergeProposal,
) -> MergeResult | None:
    """Validate the oracle proposal and apply the date/time/location precedence.

    Returns ``None`` when the proposal lacks a title, date, description or notes.
    """

    title = _clean(proposal.title)
    description = _clean(proposal.description)
    notes = _clean(proposal.merge_notes)
    if title is None or _clean(proposal.date) is None or description is None or notes is None:
        return None

    resolved = {
        "date": _prefer_candidate(candidate.date, record.date),
        "time": _prefer_candidate(candidate.time, record.time),
        "location": _prefer_candidate(candidate.location, record.location),
    }
    proposed = {"date": proposal.date, "time": proposal.time, "location": proposal.location}

    overrides: list[str] = []
    for name, value in resolved.items():
        suggested = _clean(proposed[name])
        if suggested != value:
            overrides.append(
                f"{name.capitalize()} set to {value or 'unspecified'} "
                f"(merge suggested {suggested or 'unspecified'})"
            )
    if overrides:
        notes = "; ".join([notes, *overrides])

    return MergeResult(
        title=title,
        date=resolved["date"] or record.date,
        time=resolved["time"],
        location=resolved["location"],
        description=description,
        event_type=_clean(proposal.event_type) or record.event_type or candidate.event_type,
        merge_notes=notes,
    )


@dataclass(slots=True)
class MergeResolver:
    oracle: EventOracle

    async def merge_events(self, record: EventRecord, candidate: CandidateEvent) -> MergeResult:
        """Never raises; oracle trouble returns the record unchanged with a failure note."""

        try:
            proposal = await self.oracle.merge(record, candidate)
        except (OracleInvocationError, MalformedOracleResponse) as exc:
            log.warning(f"Merging {candidate.source_label} into {record.id} failed: {exc}")
            return unchanged_result(record)

        result = resolve_merge(record, candidate, proposal)
        if result is None:
            log.warning(f"Invalid merge payload for {record.id}, keeping original fields")
            return unchanged_result(record)
        return result


def merge_update(
    record: EventRecord,
    candidate: CandidateEvent,
    result: MergeResult,
    *,
    now: datetime,
) -> dict[str, object]:
    """Field changes that apply ``result`` to ``record`` as seen from ``candidate``."""

    fields: dict[str, object] = {
        "title": result.title,
        "date": result.date,
        "time": result.time,
        "location": result.location,
        "description": result.description,
        "event_type": result.event_type,
        "merge_notes": result.merge_notes,
        "last_updated_at": now,
        "last_updated_by_source": candidate.source_label,
        "update_count": record.update_count + 1,
        "expires_at": event_expiry(now),
    }
    if not record.mentions(candidate.source_kind, candidate.source_id):
        name = (
            "source_post_ids"
            if candidate.source_kind is SourceKind.POST
            else "source_message_ids"
        )
        fields[name] = record.source_ids(candidate.source_kind) | {candidate.source_id}
    if candidate.thread_id and candidate.thread_id not in record.source_thread_ids:
        fields["source_thread_ids"] = record.source_thread_ids | {candidate.thread_id}
    return fields
