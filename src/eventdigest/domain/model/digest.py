"""The five-section daily digest and the snapshot that persists it."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime  # noqa: TC003
from typing import Final

SNAPSHOT_RETENTION_DAYS: Final[int] = 60


@dataclass(slots=True, kw_only=True)
class ImportantInfoItem:
    type: str
    description: str
    source: str
    created_at: datetime | None = None
    deadline: str | None = None
    is_new: bool = False


@dataclass(slots=True, kw_only=True)
class NewsletterEvent:
    title: str
    date: str
    description: str
    time: str | None = None
    location: str | None = None
    who_should_attend: str | None = None
    requirements: list[str] = field(default_factory=list)
    is_new: bool = False
    is_updated: bool = False
    changes: list[str] = field(default_factory=list)

    def detail_score(self) -> int:
        """Rough completeness measure used to pick between duplicates."""

        score = len(self.description or "")
        score += 50 if self.location else 0
        score += 30 if self.time else 0
        score += 40 if self.who_should_attend else 0
        score += 20 * len(self.requirements)
        return score


@dataclass(slots=True, kw_only=True)
class ThreadSummary:
    title: str
    summary: str
    tone: str = "neutral"


@dataclass(slots=True, kw_only=True)
class Digest:
    important_information: list[ImportantInfoItem] = field(default_factory=list)
    general_reminders: list[str] = field(default_factory=list)
    upcoming_events: list[NewsletterEvent] = field(default_factory=list)
    weekly_highlights: list[str] = field(default_factory=list)
    thread_summaries: list[ThreadSummary] = field(default_factory=list)


@dataclass(slots=True, kw_only=True)
class ProcessedItemIds:
    post_ids: set[str] = field(default_factory=set)
    message_ids: set[str] = field(default_factory=set)
    event_ids: set[str] = field(default_factory=set)


@dataclass(slots=True, kw_only=True)
class ProcessingStats:
    posts_processed: int = 0
    messages_processed: int = 0
    events_extracted: int = 0
    oracle_calls: int = 0
    errors: int = 0


@dataclass(slots=True, kw_only=True)
class NewsletterSnapshot:
    """One persisted digest per calendar day."""

    snapshot_date: date
    generated_at: datetime
    digest: Digest
    expires_at: datetime
    processed_item_ids: ProcessedItemIds = field(default_factory=ProcessedItemIds)
    processing_stats: ProcessingStats = field(default_factory=ProcessingStats)
