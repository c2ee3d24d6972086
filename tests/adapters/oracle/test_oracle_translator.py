from __future__ import annotations

import pytest

from eventdigest.adapters.oracle import (
    ExtractedEventPayload,
    load_json_reply,
    parse_comparison_reply,
    parse_extraction_reply,
    parse_merge_reply,
)
from eventdigest.domain.errors import MalformedOracleResponse
from eventdigest.domain.model import Confidence
from eventdigest.domain.ports import ComparisonResult, ExtractedEvent


def test_load_json_reply_strips_markdown_fence() -> None:
    reply = '```json\n[{"EventTitle": "Zoo Trip"}]\n```'

    assert load_json_reply(reply) == [{"EventTitle": "Zoo Trip"}]


def test_load_json_reply_finds_document_inside_chatter() -> None:
    reply = 'Here is the result: {"isSameEvent": false, "confidence": "low"} Hope it helps.'

    assert load_json_reply(reply) == {"isSameEvent": False, "confidence": "low"}


def test_load_json_reply_rejects_prose() -> None:
    with pytest.raises(MalformedOracleResponse) as excinfo:
        load_json_reply("I could not find any events.")

    assert excinfo.value.raw == "I could not find any events."


def test_extracted_payload_turns_blanks_into_none() -> None:
    payload = ExtractedEventPayload.model_validate(
        {"EventTitle": " Zoo Trip ", "EventTime": "", "EventLocation": "   ", "Extra": 1}
    )

    assert payload.event_title == "Zoo Trip"
    assert payload.event_time is None
    assert payload.event_location is None


def test_parse_extraction_reply_maps_every_field() -> None:
    reply = """[
        {"EventTitle": "Zoo Trip", "EventDescription": "Class trip",
         "EventDate": "2025-10-25", "EventTime": "09:00", "EventLocation": "Copenhagen Zoo",
         "EventType": "field_trip", "Confidence": "high"},
        {"EventTitle": "Bake sale", "EventDate": "2025-10-23", "EventTime": ""}
    ]"""

    events = parse_extraction_reply(reply)

    assert events == [
        ExtractedEvent(
            title="Zoo Trip",
            description="Class trip",
            date="2025-10-25",
            time="09:00",
            location="Copenhagen Zoo",
            event_type="field_trip",
            confidence="high",
        ),
        ExtractedEvent(title="Bake sale", date="2025-10-23"),
    ]


def test_parse_extraction_reply_accepts_empty_array() -> None:
    assert parse_extraction_reply("[]") == []


def test_parse_extraction_reply_rejects_object() -> None:
    with pytest.raises(MalformedOracleResponse):
        parse_extraction_reply('{"EventTitle": "Zoo Trip"}')


def test_parse_comparison_reply_normalizes_confidence() -> None:
    result = parse_comparison_reply(
        '{"isSameEvent": true, "confidence": "HIGH", "reason": "Same trip"}'
    )

    assert result == ComparisonResult(True, Confidence.HIGH, "Same trip")


def test_parse_comparison_reply_rejects_unknown_confidence() -> None:
    with pytest.raises(MalformedOracleResponse):
        parse_comparison_reply('{"isSameEvent": true, "confidence": "certain"}')


def test_parse_merge_reply_reads_merge_notes() -> None:
    proposal = parse_merge_reply(
        '{"EventTitle": "Zoo Trip", "EventDate": "2025-10-25", "EventTime": "",'
        ' "EventDescription": "Class trip", "MergeNotes": "Added location"}'
    )

    assert proposal.title == "Zoo Trip"
    assert proposal.time is None
    assert proposal.merge_notes == "Added location"
