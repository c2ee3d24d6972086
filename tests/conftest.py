from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from eventdigest.adapters.sqlalchemy import create_all_tables
from eventdigest.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyDigestUnitOfWork,
    shutdown,
    startup,
)

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from eventdigest.domain.ports import DigestUnitOfWork


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], DigestUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> DigestUnitOfWork:
        return SqlAlchemyDigestUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()
