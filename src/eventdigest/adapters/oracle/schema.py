"""Pydantic models describing oracle replies and the messages API envelope."""

from __future__ import annotations

import json
import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from eventdigest.domain.errors import MalformedOracleResponse

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(value)
    return value


class OracleBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ContentBlock(OracleBaseModel):
    type: str
    text: str | None = None


class MessagesResponse(OracleBaseModel):
    id: str | None = None
    model: str | None = None
    content: list[ContentBlock]
    stop_reason: str | None = None

    @property
    def text(self) -> str:
        return "".join(block.text or "" for block in self.content if block.type == "text")


class ExtractedEventPayload(OracleBaseModel):
    event_title: str | None = Field(default=None, alias="EventTitle")
    event_description: str | None = Field(default=None, alias="EventDescription")
    event_date: str | None = Field(default=None, alias="EventDate")
    event_time: str | None = Field(default=None, alias="EventTime")
    event_location: str | None = Field(default=None, alias="EventLocation")
    event_type: str | None = Field(default=None, alias="EventType")
    confidence: str | None = Field(default=None, alias="Confidence")

    _normalize_text = field_validator(
        "event_title",
        "event_description",
        "event_date",
        "event_time",
        "event_location",
        "event_type",
        "confidence",
        mode="before",
    )(_blank_to_none)


class ComparisonPayload(OracleBaseModel):
    is_same_event: bool = Field(alias="isSameEvent")
    confidence: Literal["high", "medium", "low"]
    reason: str = ""

    @field_validator("confidence", mode="before")
    @classmethod
    def _lowercase(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value


class MergePayload(OracleBaseModel):
    event_title: str | None = Field(default=None, alias="EventTitle")
    event_date: str | None = Field(default=None, alias="EventDate")
    event_time: str | None = Field(default=None, alias="EventTime")
    event_location: str | None = Field(default=None, alias="EventLocation")
    event_description: str | None = Field(default=None, alias="EventDescription")
    event_type: str | None = Field(default=None, alias="EventType")
    merge_notes: str | None = Field(default=None, alias="MergeNotes")

    _normalize_text = field_validator(
        "event_title",
        "event_date",
        "event_time",
        "event_location",
        "event_description",
        "event_type",
        "merge_notes",
        mode="before",
    )(_blank_to_none)


ExtractionPayload = TypeAdapter(list[ExtractedEventPayload])


def load_json_reply(text: str) -> object:
    """Parse the JSON document in a model reply, tolerating markdown fences and chatter."""

    cleaned = _FENCE.sub("", text.strip()).strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    starts = [index for index in (cleaned.find("["), cleaned.find("{")) if index >= 0]
    if starts:
        start = min(starts)
        closing = "]" if cleaned[start] == "[" else "}"
        end = cleaned.rfind(closing)
        if end > start:
            try:
                return json.loads(cleaned[start : end + 1])
            except json.JSONDecodeError:
                pass
    raise MalformedOracleResponse("Failed to parse oracle reply as JSON", raw=text)
