"""SQLAlchemy adapter package for the event digest."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry
from .repositories import (
    SqlAlchemyEventRepository,
    SqlAlchemySnapshotRepository,
    SqlAlchemySourceLedgerRepository,
    SqlAlchemyTranslatedSourceRepository,
)
from .unit_of_work import (
    SqlAlchemyDigestUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyDigestUnitOfWork",
    "SqlAlchemyEventRepository",
    "SqlAlchemySnapshotRepository",
    "SqlAlchemySourceLedgerRepository",
    "SqlAlchemyTranslatedSourceRepository",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "mapper_registry",
    "shutdown",
    "startup",
]
