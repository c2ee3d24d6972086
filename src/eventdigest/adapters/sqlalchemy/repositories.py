"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, cast

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import delete, exists, func, select, update
from sqlalchemy.exc import SQLAlchemyError

from eventdigest.domain.errors import StoreAccessError
from eventdigest.domain.model import (
    Digest,
    EventRecord,
    NewsletterSnapshot,
    ProcessedItemIds,
    ProcessingStats,
    TranslatedSource,
)

from .mappings import (
    derived_event_table,
    newsletter_snapshot_table,
    processed_source_table,
    translated_source_table,
)

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping
    from datetime import date, datetime

    from sqlalchemy import Row, Table
    from sqlalchemy.engine import CursorResult
    from sqlalchemy.orm import Session

    from eventdigest.domain.model import EventCollection, ProcessedSource, SourceKind

_DIGEST = TypeAdapter(Digest)
_PROCESSED_ITEM_IDS = TypeAdapter(ProcessedItemIds)
_PROCESSING_STATS = TypeAdapter(ProcessingStats)

_EVENT_COLUMNS = frozenset(derived_event_table.c.keys())


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise StoreAccessError(f"{action} failed: {exc}") from exc


def _rowcount(result: object) -> int:
    return cast("CursorResult[object]", result).rowcount


def _record_values(record: EventRecord) -> dict[str, object]:
    return {
        "id": record.id,
        "collection": record.collection,
        "title": record.title,
        "description": record.description,
        "date": record.date,
        "time": record.time,
        "location": record.location,
        "event_type": record.event_type,
        "confidence": record.confidence,
        "first_mentioned_at": record.first_mentioned_at,
        "last_updated_at": record.last_updated_at,
        "last_updated_by_source": record.last_updated_by_source,
        "extracted_at": record.extracted_at,
        "extraction_model_id": record.extraction_model_id,
        "expires_at": record.expires_at,
        "source_post_ids": set(record.source_post_ids),
        "source_message_ids": set(record.source_message_ids),
        "source_thread_ids": set(record.source_thread_ids),
        "update_count": record.update_count,
        "merge_notes": record.merge_notes,
    }


def _row_to_record(row: Row[tuple[object, ...]]) -> EventRecord:
    return EventRecord(**row._asdict())  # pyright: ignore[reportArgumentType]


def _row_to_source(row: Row[tuple[object, ...]]) -> TranslatedSource:
    return TranslatedSource(**row._asdict())  # pyright: ignore[reportArgumentType]


def _upsert(
    session: Session,
    table: Table,
    keys: Mapping[str, object],
    values: Mapping[str, object],
) -> None:
    """Overwrite the row identified by ``keys`` or insert it when missing."""

    stmt = update(table).values(**values)
    for name, value in keys.items():
        stmt = stmt.where(table.c[name] == value)
    if _rowcount(session.execute(stmt)) == 0:
        session.execute(table.insert().values(**keys, **values))


class SqlAlchemyEventRepository:
    """Canonical event records in one table, partitioned by the ``collection`` column."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_all_events(
        self,
        *,
        mentioned_since: datetime | None = None,
        now: datetime | None = None,
    ) -> list[EventRecord]:
        stmt = select(derived_event_table).order_by(derived_event_table.c.first_mentioned_at)
        if mentioned_since is not None:
            stmt = stmt.where(derived_event_table.c.first_mentioned_at >= mentioned_since)
        if now is not None:
            stmt = stmt.where(derived_event_table.c.expires_at > now)
        with _store_errors("Loading events"):
            rows = self.session.execute(stmt).all()
        return [_row_to_record(row) for row in rows]

    def get_event(self, event_id: str) -> EventRecord | None:
        stmt = select(derived_event_table).where(derived_event_table.c.id == event_id)
        with _store_errors(f"Loading event {event_id}"):
            row = self.session.execute(stmt).first()
        return _row_to_record(row) if row is not None else None

    def create_event(self, record: EventRecord) -> None:
        with _store_errors(f"Creating event {record.id}"):
            self.session.execute(derived_event_table.insert().values(**_record_values(record)))

    def update_event(
        self,
        event_id: str,
        fields: Mapping[str, object],
        *,
        collection: EventCollection,
    ) -> bool:
        unknown = set(fields) - _EVENT_COLUMNS
        if unknown:
            raise ValueError(f"Unknown event fields: {sorted(unknown)}")
        if not fields:
            return self._exists_in(event_id, collection)
        stmt = (
            update(derived_event_table)
            .where(derived_event_table.c.id == event_id)
            .where(derived_event_table.c.collection == collection)
            .values(**fields)
        )
        with _store_errors(f"Updating event {event_id}"):
            return _rowcount(self.session.execute(stmt)) > 0

    def delete_event(self, event_id: str, *, collection: EventCollection) -> bool:
        stmt = (
            delete(derived_event_table)
            .where(derived_event_table.c.id == event_id)
            .where(derived_event_table.c.collection == collection)
        )
        with _store_errors(f"Deleting event {event_id}"):
            return _rowcount(self.session.execute(stmt)) > 0

    def purge_expired(self, now: datetime) -> int:
        stmt = delete(derived_event_table).where(derived_event_table.c.expires_at <= now)
        with _store_errors("Purging expired events"):
            return _rowcount(self.session.execute(stmt))

    def _exists_in(self, event_id: str, collection: EventCollection) -> bool:
        stmt = select(
            exists()
            .where(derived_event_table.c.id == event_id)
            .where(derived_event_table.c.collection == collection)
        )
        with _store_errors(f"Checking event {event_id}"):
            return bool(self.session.execute(stmt).scalar())


class SqlAlchemySourceLedgerRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def exists_for_source(self, kind: SourceKind, source_id: str, *, now: datetime) -> bool:
        table = processed_source_table
        stmt = select(
            exists()
            .where(table.c.kind == kind)
            .where(table.c.source_id == source_id)
            .where(table.c.expires_at > now)
        )
        with _store_errors(f"Checking ledger for {kind}-{source_id}"):
            return bool(self.session.execute(stmt).scalar())

    def mark_processed(self, entry: ProcessedSource) -> None:
        with _store_errors(f"Marking {entry.kind}-{entry.source_id} processed"):
            _upsert(
                self.session,
                processed_source_table,
                {"kind": entry.kind, "source_id": entry.source_id},
                {
                    "processed_at": entry.processed_at,
                    "events_found": entry.events_found,
                    "expires_at": entry.expires_at,
                },
            )

    def purge_expired(self, now: datetime) -> int:
        stmt = delete(processed_source_table).where(processed_source_table.c.expires_at <= now)
        with _store_errors("Purging expired ledger entries"):
            return _rowcount(self.session.execute(stmt))


class SqlAlchemyTranslatedSourceRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, source: TranslatedSource) -> None:
        with _store_errors(f"Storing {source.label}"):
            _upsert(
                self.session,
                translated_source_table,
                {"kind": source.kind, "source_id": source.source_id},
                {
                    "title": source.title,
                    "text": source.text,
                    "sender": source.sender,
                    "thread_id": source.thread_id,
                    "source_timestamp": source.source_timestamp,
                    "translated_at": source.translated_at,
                },
            )

    def list_translated(
        self,
        kind: SourceKind,
        *,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[TranslatedSource]:
        table = translated_source_table
        stmt = select(table).where(table.c.kind == kind).order_by(table.c.source_timestamp)
        if since is not None:
            stmt = stmt.where(table.c.translated_at >= since)
        if until is not None:
            stmt = stmt.where(table.c.translated_at <= until)
        with _store_errors(f"Listing translated {kind} sources"):
            rows = self.session.execute(stmt).all()
        return [_row_to_source(row) for row in rows]

    def count_translated_since(self, kind: SourceKind, since: datetime) -> int:
        table = translated_source_table
        stmt = (
            select(func.count())
            .select_from(table)
            .where(table.c.kind == kind, table.c.translated_at > since)
        )
        with _store_errors(f"Counting translated {kind} sources"):
            return self.session.execute(stmt).scalar_one()


class SqlAlchemySnapshotRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, snapshot_date: date) -> NewsletterSnapshot | None:
        table = newsletter_snapshot_table
        stmt = select(table).where(table.c.snapshot_date == snapshot_date)
        with _store_errors(f"Loading snapshot {snapshot_date}"):
            row = self.session.execute(stmt).first()
        if row is None:
            return None
        try:
            return NewsletterSnapshot(
                snapshot_date=row.snapshot_date,
                generated_at=row.generated_at,
                expires_at=row.expires_at,
                digest=_DIGEST.validate_python(row.digest),
                processed_item_ids=_PROCESSED_ITEM_IDS.validate_python(row.processed_item_ids),
                processing_stats=_PROCESSING_STATS.validate_python(row.processing_stats),
            )
        except ValidationError as exc:
            raise StoreAccessError(f"Snapshot {snapshot_date} is unreadable: {exc}") from exc

    def save(self, snapshot: NewsletterSnapshot) -> None:
        with _store_errors(f"Saving snapshot {snapshot.snapshot_date}"):
            _upsert(
                self.session,
                newsletter_snapshot_table,
                {"snapshot_date": snapshot.snapshot_date},
                {
                    "generated_at": snapshot.generated_at,
                    "expires_at": snapshot.expires_at,
                    "digest": _DIGEST.dump_python(snapshot.digest, mode="json"),
                    "processed_item_ids": _PROCESSED_ITEM_IDS.dump_python(
                        snapshot.processed_item_ids, mode="json"
                    ),
                    "processing_stats": _PROCESSING_STATS.dump_python(
                        snapshot.processing_stats, mode="json"
                    ),
                },
            )

    def purge_expired(self, now: datetime) -> int:
        table = newsletter_snapshot_table
        stmt = delete(table).where(table.c.expires_at <= now)
        with _store_errors("Purging expired snapshots"):
            return _rowcount(self.session.execute(stmt))


if TYPE_CHECKING:
    from eventdigest.domain.ports.persistence import (
        EventRepository,
        SnapshotRepository,
        SourceLedgerRepository,
        TranslatedSourceRepository,
    )

    _session_stub = cast("Session", object())
    _event_repo: EventRepository = SqlAlchemyEventRepository(_session_stub)
    _ledger_repo: SourceLedgerRepository = SqlAlchemySourceLedgerRepository(_session_stub)
    _source_repo: TranslatedSourceRepository = SqlAlchemyTranslatedSourceRepository(_session_stub)
    _snapshot_repo: SnapshotRepository = SqlAlchemySnapshotRepository(_session_stub)
