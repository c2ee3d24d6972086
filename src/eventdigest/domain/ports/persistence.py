"""Ports for persisting events, sources and snapshots.

Adapters raise ``StoreAccessError`` for any failure to reach the underlying store;
the callers decide which safe default applies.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import date, datetime

    from eventdigest.domain.model import (
        EventCollection,
        EventRecord,
        NewsletterSnapshot,
        ProcessedSource,
        SourceKind,
        TranslatedSource,
    )


@runtime_checkable
class EventRepository(Protocol):
    """Canonical event records, partitioned into post and message collections."""

    def get_all_events(
        self,
        *,
        mentioned_since: datetime | None = None,
        now: datetime | None = None,
    ) -> list[EventRecord]: ...

    def get_event(self, event_id: str) -> EventRecord | None: ...

    def create_event(self, record: EventRecord) -> None: ...

    def update_event(
        self,
        event_id: str,
        fields: Mapping[str, object],
        *,
        collection: EventCollection,
    ) -> bool: ...

    def delete_event(self, event_id: str, *, collection: EventCollection) -> bool: ...

    def purge_expired(self, now: datetime) -> int: ...


@runtime_checkable
class SourceLedgerRepository(Protocol):
    """Records which sources already went through a validated extraction."""

    def exists_for_source(self, kind: SourceKind, source_id: str, *, now: datetime) -> bool: ...

    def mark_processed(self, entry: ProcessedSource) -> None: ...

    def purge_expired(self, now: datetime) -> int: ...


@runtime_checkable
class TranslatedSourceRepository(Protocol):
    """Read access to translated posts and messages supplied by upstream ingestion."""

    def add(self, source: TranslatedSource) -> None: ...

    def list_translated(
        self,
        kind: SourceKind,
        *,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[TranslatedSource]: ...

    def count_translated_since(self, kind: SourceKind, since: datetime) -> int: ...


@runtime_checkable
class SnapshotRepository(Protocol):
    """One digest snapshot per calendar day, overwritten in full on save."""

    def get(self, snapshot_date: date) -> NewsletterSnapshot | None: ...

    def save(self, snapshot: NewsletterSnapshot) -> None: ...

    def purge_expired(self, now: datetime) -> int: ...
