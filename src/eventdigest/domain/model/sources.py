"""Translated source records consumed by the extraction pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .enums import SourceKind

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(slots=True, frozen=True, kw_only=True)
class TranslatedSource:
    """A post or message whose text has already been translated upstream.

    For posts ``title`` carries the post headline and ``text`` its body; for
    messages ``text`` is the message body and ``sender``/``thread_id`` identify
    the conversation.
    """

    kind: SourceKind
    source_id: str
    text: str
    source_timestamp: datetime
    translated_at: datetime
    title: str | None = None
    sender: str | None = None
    thread_id: str | None = None

    @property
    def label(self) -> str:
        return f"{self.kind}-{self.source_id}"


@dataclass(slots=True, frozen=True, kw_only=True)
class ProcessedSource:
    """Ledger entry recording a validated extraction for one source."""

    kind: SourceKind
    source_id: str
    processed_at: datetime
    events_found: int
    expires_at: datetime
