"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Confidence(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SourceKind(StrEnum):
    """Origin of a translated record."""

    POST = "post"
    MESSAGE = "message"


class EventCollection(StrEnum):
    """Store partition a canonical record lives in, keyed by its first origin."""

    POSTS = "posts"
    MESSAGES = "messages"

    @classmethod
    def for_source(cls, kind: SourceKind) -> EventCollection:
        return cls.POSTS if kind is SourceKind.POST else cls.MESSAGES


class EventType(StrEnum):
    FIELD_TRIP = "field_trip"
    DEADLINE = "deadline"
    MEETING = "meeting"
    CELEBRATION = "celebration"
    SPORTS = "sports"
    HOLIDAY = "holiday"
    OTHER = "other"


class ImportantInfoType(StrEnum):
    HEALTH_ALERT = "health_alert"
    POLICY_CHANGE = "policy_change"
    DEADLINE = "deadline"
    FAMILY_MENTION = "family_mention"
    URGENT_REQUEST = "urgent_request"
