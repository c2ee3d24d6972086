"""Daily digest composition and snapshot merging."""

from __future__ import annotations

from .compose import compose_fresh_digest, to_newsletter_event, within_horizon
from .history import (
    LookupStatus,
    SnapshotLookup,
    build_snapshot,
    load_previous_snapshot,
    load_snapshot,
    save_snapshot,
)
from .snapshot_merge import (
    DEFAULT_RETENTION_DAYS,
    MAX_HIGHLIGHTS,
    MAX_REMINDERS,
    RETENTION_DAYS,
    deduplicate_events,
    detect_event_changes,
    filter_past_events,
    is_retained,
    is_upcoming,
    merge_events,
    merge_important_info,
    merge_reminders,
    merge_snapshots,
    stamp_fresh_digest,
)

__all__ = [
    "DEFAULT_RETENTION_DAYS",
    "MAX_HIGHLIGHTS",
    "MAX_REMINDERS",
    "RETENTION_DAYS",
    "LookupStatus",
    "SnapshotLookup",
    "build_snapshot",
    "compose_fresh_digest",
    "deduplicate_events",
    "detect_event_changes",
    "filter_past_events",
    "is_retained",
    "is_upcoming",
    "load_previous_snapshot",
    "load_snapshot",
    "merge_events",
    "merge_important_info",
    "merge_reminders",
    "merge_snapshots",
    "save_snapshot",
    "stamp_fresh_digest",
    "to_newsletter_event",
    "within_horizon",
]
