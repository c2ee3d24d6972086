"""Prompt templates for event extraction, comparison and merging."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from eventdigest.domain.model import EventType, SourceKind

if TYPE_CHECKING:
    from eventdigest.config import Personalization
    from eventdigest.domain.model import CandidateEvent, EventRecord, TranslatedSource

_NOT_SPECIFIED: Final[str] = "Not specified"
_EVENT_TYPES: Final[str] = ", ".join(member.value for member in EventType)

_EXTRACTION_RULES: Final[str] = f"""<extraction_rules>
1. Only extract events explicitly mentioned in the text.
2. Dates: use ISO format (YYYY-MM-DD) when possible. Resolve relative dates
   ("next Tuesday", "tomorrow") from the date the text was written. If the date
   stays ambiguous, keep the original wording in EventDate and use Confidence "low".
3. Use an empty string "" for missing fields instead of omitting them.
4. EventType must be one of: {_EVENT_TYPES}.
5. Confidence: "high" for an explicit date, time and description, "medium" for a
   clear event with vague timing, "low" for an implied or ambiguous event.
</extraction_rules>

<output_format>
Return ONLY a JSON array, without markdown or commentary. Each element has the keys
EventTitle, EventDescription, EventDate, EventTime, EventLocation, EventType and
Confidence. Return [] when the text mentions no events.
</output_format>

<example>
Input: "School trip to Copenhagen Zoo on October 25th at 9am. Meet at the entrance."
Output: [{{"EventTitle": "School Trip to Zoo", "EventDescription": "Class visit to \
Copenhagen Zoo, meet at the entrance", "EventDate": "2025-10-25", "EventTime": "09:00", \
"EventLocation": "Copenhagen Zoo", "EventType": "field_trip", "Confidence": "high"}}]
</example>"""


def _or_unspecified(value: str | None) -> str:
    return value if value else _NOT_SPECIFIED


def _describe(
    title: str,
    date: str,
    time: str | None,
    location: str | None,
    description: str,
    event_type: str | None,
) -> str:
    return (
        f"Title: {title}\n"
        f"Date: {date}\n"
        f"Time: {_or_unspecified(time)}\n"
        f"Location: {_or_unspecified(location)}\n"
        f"Description: {description}\n"
        f"Type: {_or_unspecified(event_type)}"
    )


def describe_candidate(candidate: CandidateEvent) -> str:
    return _describe(
        candidate.title,
        candidate.date,
        candidate.time,
        candidate.location,
        candidate.description,
        candidate.event_type,
    )


def describe_record(record: EventRecord) -> str:
    return _describe(
        record.title,
        record.date,
        record.time,
        record.location,
        record.description,
        record.event_type,
    )


def system_prompt(personalization: Personalization) -> str:
    """Household context shared by every call."""

    lines = ["You help parents keep track of school communications."]
    if personalization.child_name:
        lines.append(f"The child's name is {personalization.child_name}.")
    if personalization.parent_names:
        lines.append(f"The parents are {', '.join(personalization.parent_names)}.")
    if personalization.family_names_to_flag:
        names = ", ".join(personalization.family_names_to_flag)
        lines.append(f"Mentions of {names} concern this family directly.")
    lines.append("Always answer with JSON only.")
    return " ".join(lines)


def extraction_prompt(source: TranslatedSource) -> str:
    written = source.source_timestamp.isoformat()
    if source.kind is SourceKind.POST:
        header = (
            f"Post Title: {source.title or ''}\n"
            f"Post Content: {source.text}\n"
            f"Posted On: {written}"
        )
    else:
        header = (
            f"Message From: {source.sender or 'Unknown'}\n"
            f"Message Sent: {written}\n"
            f"Message Text: {source.text}"
        )
    return (
        "<role>You are an event extraction specialist analyzing school communications.</role>\n\n"
        f"<task>Extract structured event information from the {source.kind} below.</task>\n\n"
        f"<input>\n{header}\n</input>\n\n"
        f"{_EXTRACTION_RULES}\n"
    )


def comparison_prompt(candidate: CandidateEvent, record: EventRecord) -> str:
    return (
        "<role>You are an event deduplication specialist.</role>\n\n"
        "<task>Decide whether these two descriptions refer to the SAME real-world event."
        "</task>\n\n"
        f"<new_event>\n{describe_candidate(candidate)}\n</new_event>\n\n"
        f"<existing_event>\n{describe_record(record)}\n</existing_event>\n\n"
        "<matching_rules>\n"
        "Same event: dates within a day of each other, a similar location "
        '("Zoo" and "Copenhagen Zoo") and a similar activity ("Zoo trip" and '
        '"Visit to zoo"). Time differences are acceptable when the rest matches.\n'
        "Different events: dates more than two days apart, clearly different places, "
        "activities or event types.\n"
        "A vague mention may still match a specific one; use common sense.\n"
        "</matching_rules>\n\n"
        "<output_format>\n"
        'Return ONLY JSON: {"isSameEvent": true, "confidence": "high", "reason": "..."}.\n'
        'confidence is "high" for a clear match or mismatch, "medium" when likely but '
        'somewhat ambiguous, "low" when uncertain.\n'
        "</output_format>"
    )


def merge_prompt(record: EventRecord, candidate: CandidateEvent) -> str:
    return (
        "<role>You are an event information merger.</role>\n\n"
        "<task>Merge what two sources say about the same event, preferring the newer "
        "source.</task>\n\n"
        f"<existing_event>\n{describe_record(record)}\n\n"
        f"First Mentioned: {record.first_mentioned_at.isoformat()}\n"
        f"Last Updated: {record.last_updated_at.isoformat()}\n</existing_event>\n\n"
        f"<new_information>\nSource Date: {candidate.source_timestamp.isoformat()}\n\n"
        f"{describe_candidate(candidate)}\n</new_information>\n\n"
        "<merging_rules>\n"
        "1. Newer information wins for date, time and location changes, and for "
        "cancellations or postponements.\n"
        "2. Combine both descriptions so every relevant fact is kept, without repetition.\n"
        "3. Keep an existing time or location when the new source does not mention one.\n"
        "</merging_rules>\n\n"
        "<output_format>\n"
        "Return ONLY JSON with the keys EventTitle, EventDate, EventTime, EventLocation, "
        "EventDescription, EventType and MergeNotes. MergeNotes briefly states what "
        'changed, e.g. "Updated start time from 09:00 to 10:00" or "No changes, just '
        'confirmation".\n'
        "</output_format>"
    )
