"""Domain model for extracted events and daily digests."""

from __future__ import annotations

from .digest import (
    SNAPSHOT_RETENTION_DAYS,
    Digest,
    ImportantInfoItem,
    NewsletterEvent,
    NewsletterSnapshot,
    ProcessedItemIds,
    ProcessingStats,
    ThreadSummary,
)
from .enums import Confidence, EventCollection, EventType, ImportantInfoType, SourceKind
from .events import (
    EVENT_RETENTION,
    CandidateEvent,
    EventRecord,
    event_expiry,
    new_event_id,
)
from .sources import ProcessedSource, TranslatedSource

__all__ = [
    "EVENT_RETENTION",
    "SNAPSHOT_RETENTION_DAYS",
    "CandidateEvent",
    "Confidence",
    "Digest",
    "EventCollection",
    "EventRecord",
    "EventType",
    "ImportantInfoItem",
    "ImportantInfoType",
    "NewsletterEvent",
    "NewsletterSnapshot",
    "ProcessedItemIds",
    "ProcessedSource",
    "ProcessingStats",
    "SourceKind",
    "ThreadSummary",
    "TranslatedSource",
    "event_expiry",
    "new_event_id",
]
