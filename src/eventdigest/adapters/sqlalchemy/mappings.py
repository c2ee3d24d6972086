"""SQLAlchemy table metadata for events, sources and snapshots."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Dialect,
    Enum,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    orm,
)

from eventdigest.domain.model import Confidence, EventCollection, SourceKind

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class StringSetType(TypeDecorator[set[str]]):
    """A set of identifiers stored as a sorted JSON array."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value: set[str] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return json.dumps([])
        return json.dumps(sorted(value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> set[str]:
        _ = dialect
        if value is None:
            return set()
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return set()
        items = cast(list[Any], loaded)
        return {item for item in items if isinstance(item, str)}


def _enum_values(enum_cls: type[StrEnum]) -> list[str]:
    return [member.value for member in enum_cls]


def _enum_column[TEnum: StrEnum](enum_cls: type[TEnum]) -> Enum:
    return Enum(
        enum_cls,
        native_enum=False,
        values_callable=_enum_values,
        validate_strings=True,
    )


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Event store -----------------------------------------------------------------

derived_event_table = Table(
    "derived_event",
    mapper_registry.metadata,
    Column("id", String, primary_key=True),
    Column("collection", _enum_column(EventCollection), nullable=False),
    Column("title", String, nullable=False),
    Column("description", Text, nullable=False),
    Column("date", String, nullable=False),
    Column("time", String, nullable=True),
    Column("location", String, nullable=True),
    Column("event_type", String, nullable=True),
    Column("confidence", _enum_column(Confidence), nullable=False),
    Column("first_mentioned_at", UTCDateTime(), nullable=False),
    Column("last_updated_at", UTCDateTime(), nullable=False),
    Column("last_updated_by_source", String, nullable=False),
    Column("extracted_at", UTCDateTime(), nullable=False),
    Column("extraction_model_id", String, nullable=False),
    Column("expires_at", UTCDateTime(), nullable=False),
    Column("source_post_ids", StringSetType(), nullable=False),
    Column("source_message_ids", StringSetType(), nullable=False),
    Column("source_thread_ids", StringSetType(), nullable=False),
    Column("update_count", Integer, nullable=False, default=0),
    Column("merge_notes", Text, nullable=True),
    Index("ix_derived_event_collection_id", "collection", "id"),
    Index("ix_derived_event_expires_at", "expires_at"),
)

# Source ledger and translated sources -----------------------------------------

processed_source_table = Table(
    "processed_source",
    mapper_registry.metadata,
    Column("kind", _enum_column(SourceKind), primary_key=True),
    Column("source_id", String, primary_key=True),
    Column("processed_at", UTCDateTime(), nullable=False),
    Column("events_found", Integer, nullable=False, default=0),
    Column("expires_at", UTCDateTime(), nullable=False),
)

translated_source_table = Table(
    "translated_source",
    mapper_registry.metadata,
    Column("kind", _enum_column(SourceKind), primary_key=True),
    Column("source_id", String, primary_key=True),
    Column("title", String, nullable=True),
    Column("text", Text, nullable=False),
    Column("sender", String, nullable=True),
    Column("thread_id", String, nullable=True),
    Column("source_timestamp", UTCDateTime(), nullable=False),
    Column("translated_at", UTCDateTime(), nullable=False),
    Index("ix_translated_source_kind_translated_at", "kind", "translated_at"),
)

# Snapshots ---------------------------------------------------------------------

newsletter_snapshot_table = Table(
    "newsletter_snapshot",
    mapper_registry.metadata,
    Column("snapshot_date", Date, primary_key=True),
    Column("generated_at", UTCDateTime(), nullable=False),
    Column("expires_at", UTCDateTime(), nullable=False),
    Column("digest", JSON, nullable=False),
    Column("processed_item_ids", JSON, nullable=False),
    Column("processing_stats", JSON, nullable=False),
)


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
