"""JSON documents exchanged with the ingestion and summarisation steps.

Translated sources arrive as JSON lines, one post or message per line. The
summarisation step hands over the non-event digest sections as a single JSON
object in the same camelCase layout the rendered digest uses.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from eventdigest.domain.model import (
    Digest,
    ImportantInfoItem,
    NewsletterEvent,
    SourceKind,
    ThreadSummary,
    TranslatedSource,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from eventdigest.domain.model import NewsletterSnapshot


class DocumentError(ValueError):
    """Raised when an input document cannot be read as the expected shape."""


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class DocumentModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TranslatedSourceDocument(DocumentModel):
    kind: SourceKind
    source_id: str = Field(alias="sourceId")
    text: str
    source_timestamp: datetime = Field(alias="sourceTimestamp")
    translated_at: datetime | None = Field(default=None, alias="translatedAt")
    title: str | None = None
    sender: str | None = None
    thread_id: str | None = Field(default=None, alias="threadId")

    _normalize_optional = field_validator("title", "sender", "thread_id", mode="before")(
        _blank_to_none
    )

    @field_validator("source_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        return str(value) if isinstance(value, int) and not isinstance(value, bool) else value

    def to_domain(self, *, received_at: datetime) -> TranslatedSource:
        return TranslatedSource(
            kind=self.kind,
            source_id=self.source_id,
            text=self.text,
            source_timestamp=_as_utc(self.source_timestamp),
            translated_at=_as_utc(self.translated_at or received_at),
            title=self.title,
            sender=self.sender,
            thread_id=self.thread_id,
        )


class ImportantInfoDocument(DocumentModel):
    type: str
    description: str
    source: str = ""
    created_at: datetime | None = Field(default=None, alias="createdAt")
    deadline: str | None = None
    is_new: bool = Field(default=False, alias="isNew")

    _normalize_deadline = field_validator("deadline", mode="before")(_blank_to_none)


class UpcomingEventDocument(DocumentModel):
    title: str
    date: str
    description: str = ""
    time: str | None = None
    location: str | None = None
    who_should_attend: str | None = Field(default=None, alias="whoShouldAttend")
    requirements: list[str] = Field(default_factory=list)
    is_new: bool = Field(default=False, alias="isNew")
    is_updated: bool = Field(default=False, alias="isUpdated")
    changes: list[str] = Field(default_factory=list)

    _normalize_optional = field_validator(
        "time", "location", "who_should_attend", mode="before"
    )(_blank_to_none)


class ThreadSummaryDocument(DocumentModel):
    title: str
    summary: str
    tone: str = "neutral"


class DigestDocument(DocumentModel):
    important_information: list[ImportantInfoDocument] = Field(
        default_factory=list, alias="importantInformation"
    )
    general_reminders: list[str] = Field(default_factory=list, alias="generalReminders")
    upcoming_events: list[UpcomingEventDocument] = Field(
        default_factory=list, alias="upcomingEvents"
    )
    weekly_highlights: list[str] = Field(default_factory=list, alias="weeklyHighlights")
    thread_summaries: list[ThreadSummaryDocument] = Field(
        default_factory=list, alias="threadSummaries"
    )

    def to_domain(self) -> Digest:
        return Digest(
            important_information=[
                ImportantInfoItem(
                    type=item.type,
                    description=item.description,
                    source=item.source,
                    created_at=_as_utc(item.created_at) if item.created_at else None,
                    deadline=item.deadline,
                    is_new=item.is_new,
                )
                for item in self.important_information
            ],
            general_reminders=list(self.general_reminders),
            upcoming_events=[
                NewsletterEvent(
                    title=event.title,
                    date=event.date,
                    description=event.description,
                    time=event.time,
                    location=event.location,
                    who_should_attend=event.who_should_attend,
                    requirements=list(event.requirements),
                    is_new=event.is_new,
                    is_updated=event.is_updated,
                    changes=list(event.changes),
                )
                for event in self.upcoming_events
            ],
            weekly_highlights=list(self.weekly_highlights),
            thread_summaries=[
                ThreadSummary(title=thread.title, summary=thread.summary, tone=thread.tone)
                for thread in self.thread_summaries
            ],
        )

    @classmethod
    def from_domain(cls, digest: Digest) -> DigestDocument:
        return cls(
            important_information=[
                ImportantInfoDocument(
                    type=item.type,
                    description=item.description,
                    source=item.source,
                    created_at=item.created_at,
                    deadline=item.deadline,
                    is_new=item.is_new,
                )
                for item in digest.important_information
            ],
            general_reminders=list(digest.general_reminders),
            upcoming_events=[
                UpcomingEventDocument(
                    title=event.title,
                    date=event.date,
                    description=event.description,
                    time=event.time,
                    location=event.location,
                    who_should_attend=event.who_should_attend,
                    requirements=list(event.requirements),
                    is_new=event.is_new,
                    is_updated=event.is_updated,
                    changes=list(event.changes),
                )
                for event in digest.upcoming_events
            ],
            weekly_highlights=list(digest.weekly_highlights),
            thread_summaries=[
                ThreadSummaryDocument(title=thread.title, summary=thread.summary, tone=thread.tone)
                for thread in digest.thread_summaries
            ],
        )


def iter_translated_sources(path: Path, *, received_at: datetime) -> Iterator[TranslatedSource]:
    """Yield sources from a JSON-lines file, skipping blank lines."""

    with path.open(encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            try:
                document = TranslatedSourceDocument.model_validate_json(line)
            except ValidationError as exc:
                raise DocumentError(f"{path}:{line_number}: invalid source: {exc}") from exc
            yield document.to_domain(received_at=received_at)


def read_sections(path: Path) -> Digest:
    try:
        document = DigestDocument.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise DocumentError(f"{path}: invalid sections document: {exc}") from exc
    return document.to_domain()


def render_snapshot(snapshot: NewsletterSnapshot) -> str:
    document = DigestDocument.from_domain(snapshot.digest)
    payload = {
        "snapshotDate": snapshot.snapshot_date.isoformat(),
        "generatedAt": snapshot.generated_at.isoformat(),
        "digest": document.model_dump(mode="json", by_alias=True),
        "processingStats": {
            "postsProcessed": snapshot.processing_stats.posts_processed,
            "messagesProcessed": snapshot.processing_stats.messages_processed,
            "eventsExtracted": snapshot.processing_stats.events_extracted,
            "oracleCalls": snapshot.processing_stats.oracle_calls,
            "errors": snapshot.processing_stats.errors,
        },
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)
