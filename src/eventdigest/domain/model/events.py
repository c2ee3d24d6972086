"""Candidate and canonical event records."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from dateutil.relativedelta import relativedelta

from .enums import Confidence, EventCollection, SourceKind

if TYPE_CHECKING:
    from datetime import datetime

EVENT_RETENTION: Final = relativedelta(months=2)


def new_event_id() -> str:
    return f"event-{uuid.uuid4()}"


def event_expiry(now: datetime) -> datetime:
    return now + EVENT_RETENTION


@dataclass(slots=True, kw_only=True)
class CandidateEvent:
    """An unconfirmed event extracted from a single source."""

    title: str
    description: str
    date: str
    source_kind: SourceKind
    source_id: str
    source_timestamp: datetime
    time: str | None = None
    location: str | None = None
    event_type: str | None = None
    confidence: Confidence = Confidence.MEDIUM
    thread_id: str | None = None

    @property
    def source_label(self) -> str:
        return f"{self.source_kind}-{self.source_id}"


@dataclass(slots=True, kw_only=True)
class EventRecord:
    """Persisted, deduplicated representation of one real-world event."""

    title: str
    description: str
    date: str
    first_mentioned_at: datetime
    last_updated_at: datetime
    last_updated_by_source: str
    extracted_at: datetime
    extraction_model_id: str
    expires_at: datetime
    collection: EventCollection
    id: str = field(default_factory=new_event_id)
    time: str | None = None
    location: str | None = None
    event_type: str | None = None
    confidence: Confidence = Confidence.MEDIUM
    source_post_ids: set[str] = field(default_factory=set)
    source_message_ids: set[str] = field(default_factory=set)
    source_thread_ids: set[str] = field(default_factory=set)
    update_count: int = 0
    merge_notes: str | None = None

    @classmethod
    def from_candidate(
        cls,
        candidate: CandidateEvent,
        *,
        now: datetime,
        model_id: str,
    ) -> EventRecord:
        record = cls(
            title=candidate.title,
            description=candidate.description,
            date=candidate.date,
            time=candidate.time,
            location=candidate.location,
            event_type=candidate.event_type,
            confidence=candidate.confidence,
            first_mentioned_at=now,
            last_updated_at=now,
            last_updated_by_source=candidate.source_label,
            extracted_at=now,
            extraction_model_id=model_id,
            expires_at=event_expiry(now),
            collection=EventCollection.for_source(candidate.source_kind),
        )
        record.add_source(candidate.source_kind, candidate.source_id)
        if candidate.thread_id:
            record.source_thread_ids.add(candidate.thread_id)
        return record

    def source_ids(self, kind: SourceKind) -> set[str]:
        return self.source_post_ids if kind is SourceKind.POST else self.source_message_ids

    def add_source(self, kind: SourceKind, source_id: str) -> bool:
        """Add ``source_id`` to the matching source set; return whether it was new."""

        ids = self.source_ids(kind)
        if source_id in ids:
            return False
        ids.add(source_id)
        return True

    def mentions(self, kind: SourceKind, source_id: str) -> bool:
        return source_id in self.source_ids(kind)

    @property
    def merge_target(self) -> EventCollection:
        # decided from the existing post ids only, even for mixed-origin records
        return EventCollection.POSTS if self.source_post_ids else EventCollection.MESSAGES

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now
