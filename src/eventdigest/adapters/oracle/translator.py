"""Translate oracle replies into domain port values."""

from __future__ import annotations

from pydantic import ValidationError

from eventdigest.domain.errors import MalformedOracleResponse
from eventdigest.domain.model import Confidence
from eventdigest.domain.ports import ComparisonResult, ExtractedEvent, MergeProposal

from .schema import (
    ComparisonPayload,
    ExtractedEventPayload,
    ExtractionPayload,
    MergePayload,
    load_json_reply,
)


def to_extracted_event(payload: ExtractedEventPayload) -> ExtractedEvent:
    return ExtractedEvent(
        title=payload.event_title,
        description=payload.event_description,
        date=payload.event_date,
        time=payload.event_time,
        location=payload.event_location,
        event_type=payload.event_type,
        confidence=payload.confidence,
    )


def parse_extraction_reply(text: str) -> list[ExtractedEvent]:
    loaded = load_json_reply(text)
    if not isinstance(loaded, list):
        raise MalformedOracleResponse("Extraction reply is not a JSON array", raw=text)
    try:
        payloads = ExtractionPayload.validate_python(loaded)
    except ValidationError as exc:
        raise MalformedOracleResponse(f"Invalid extraction reply: {exc}", raw=text) from exc
    return [to_extracted_event(payload) for payload in payloads]


def parse_comparison_reply(text: str) -> ComparisonResult:
    try:
        payload = ComparisonPayload.model_validate(load_json_reply(text))
    except ValidationError as exc:
        raise MalformedOracleResponse(f"Invalid comparison reply: {exc}", raw=text) from exc
    return ComparisonResult(
        is_same_event=payload.is_same_event,
        confidence=Confidence(payload.confidence),
        reason=payload.reason,
    )


def parse_merge_reply(text: str) -> MergeProposal:
    try:
        payload = MergePayload.model_validate(load_json_reply(text))
    except ValidationError as exc:
        raise MalformedOracleResponse(f"Invalid merge reply: {exc}", raw=text) from exc
    return MergeProposal(
        title=payload.event_title,
        date=payload.event_date,
        time=payload.event_time,
        location=payload.event_location,
        description=payload.event_description,
        event_type=payload.event_type,
        merge_notes=payload.merge_notes,
    )
