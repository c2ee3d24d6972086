"""Text-generation oracle adapter package."""

from __future__ import annotations

from .client import HttpEventOracle, build_http_oracle
from .schema import ComparisonPayload, ExtractedEventPayload, MergePayload, load_json_reply
from .translator import parse_comparison_reply, parse_extraction_reply, parse_merge_reply

__all__ = [
    "ComparisonPayload",
    "ExtractedEventPayload",
    "HttpEventOracle",
    "MergePayload",
    "build_http_oracle",
    "load_json_reply",
    "parse_comparison_reply",
    "parse_extraction_reply",
    "parse_merge_reply",
]
