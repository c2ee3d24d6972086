"""Clock injection and trailing time windows for source scans."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class TimeWindow:
    """The trailing stretch of time a scan over translated sources covers."""

    lookback: timedelta

    @classmethod
    def trailing_days(cls, days: int) -> TimeWindow:
        if days < 0:
            raise ValueError("Window days must be non-negative")
        return cls(lookback=timedelta(days=days))

    def resolve(self, *, clock: Clock = utcnow) -> tuple[datetime, datetime]:
        """Anchor the window at ``clock()`` and return UTC ``(start, end)``."""

        anchor = clock()
        if anchor.tzinfo is None:
            anchor = anchor.replace(tzinfo=UTC)
        anchor = anchor.astimezone(UTC)
        return anchor - self.lookback, anchor


__all__ = ["Clock", "TimeWindow", "utcnow"]
