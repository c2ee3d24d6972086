"""The in-run working set of canonical event records."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from eventdigest.domain.errors import StoreAccessError

from .outcomes import StoreWrite

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping
    from datetime import datetime

    from eventdigest.domain.model import EventCollection, EventRecord
    from eventdigest.domain.ports import DigestUnitOfWork

log = getLogger(__name__)


class EventWorkingSet:
    """Owned, in-memory view of the event store for the duration of one run.

    The full set is loaded once; afterwards every create and update goes through
    this object, which writes the record to the store first and then mirrors the
    change in memory. Records created or updated mid-run are therefore visible to
    later matching attempts. Callers hold ``lock`` around a match-and-write
    sequence so concurrent lanes observe each other's writes.
    """

    def __init__(
        self,
        records: Iterable[EventRecord],
        *,
        unit_of_work_factory: Callable[[], DigestUnitOfWork],
    ) -> None:
        self._records: list[EventRecord] = list(records)
        self._unit_of_work_factory = unit_of_work_factory
        self.lock = asyncio.Lock()

    @classmethod
    def load(
        cls,
        *,
        unit_of_work_factory: Callable[[], DigestUnitOfWork],
        now: datetime,
        mentioned_since: datetime | None = None,
    ) -> tuple[EventWorkingSet, bool]:
        """Load unexpired records; a failing read yields an empty set and ``True``."""

        try:
            with unit_of_work_factory() as uow:
                records = uow.repositories.events.get_all_events(
                    mentioned_since=mentioned_since, now=now
                )
        except StoreAccessError as exc:
            log.error(f"Loading existing events failed, starting from an empty set: {exc}")
            return cls((), unit_of_work_factory=unit_of_work_factory), True
        log.info(f"Loaded {len(records)} existing events")
        return cls(records, unit_of_work_factory=unit_of_work_factory), False

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> tuple[EventRecord, ...]:
        return tuple(self._records)

    def create(self, record: EventRecord) -> StoreWrite:
        try:
            with self._unit_of_work_factory() as uow:
                uow.repositories.events.create_event(record)
                uow.commit()
        except StoreAccessError as exc:
            log.error(f"Creating event {record.title!r} failed: {exc}")
            return StoreWrite(ok=False)
        self._records.append(record)
        return StoreWrite(ok=True)

    def update(
        self,
        record: EventRecord,
        fields: Mapping[str, object],
        *,
        collection: EventCollection,
    ) -> StoreWrite:
        """Persist ``fields`` for ``record`` in ``collection`` and mirror them in memory.

        When no record with that id lives in ``collection`` the store is left
        untouched, a warning is logged and the in-memory record is not changed.
        """

        try:
            with self._unit_of_work_factory() as uow:
                found = uow.repositories.events.update_event(
                    record.id, fields, collection=collection
                )
                uow.commit()
        except StoreAccessError as exc:
            log.error(f"Updating event {record.id} failed: {exc}")
            return StoreWrite(ok=False)

        if not found:
            log.warning(f"Event {record.id} not found in {collection} collection, update skipped")
            return StoreWrite(ok=True, found=False)

        for name, value in fields.items():
            setattr(record, name, value)
        return StoreWrite(ok=True)
