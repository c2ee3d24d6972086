"""HTTP client for the text-generation oracle (messages API)."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from eventdigest.adapters.http_resilience import ResilientClient
from eventdigest.config import OracleConfig, get_oracle_config
from eventdigest.domain.errors import MalformedOracleResponse, OracleInvocationError
from eventdigest.domain.ports import EventOracle

from .prompts import comparison_prompt, extraction_prompt, merge_prompt, system_prompt
from .schema import MessagesResponse
from .translator import parse_comparison_reply, parse_extraction_reply, parse_merge_reply

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from eventdigest.config import ResilienceConfig
    from eventdigest.domain.model import CandidateEvent, EventRecord, TranslatedSource
    from eventdigest.domain.ports import ComparisonResult, ExtractedEvent, MergeProposal

log = getLogger(__name__)

MESSAGES_PATH = "/v1/messages"


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class HttpEventOracle:
    """``EventOracle`` backed by a messages-style completion endpoint.

    One ``ResilientClient`` is opened lazily and shared by every call, so the
    rate limit applies across both processing lanes. Use the oracle as an async
    context manager to close it.
    """

    config: OracleConfig = field(default_factory=get_oracle_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _client: ResilientClient | None = field(default=None, init=False, repr=False)

    @property
    def model_id(self) -> str:
        return self.config.model_id

    async def __aenter__(self) -> HttpEventOracle:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def extract(self, source: TranslatedSource) -> list[ExtractedEvent]:
        reply = await self._complete(extraction_prompt(source))
        events = parse_extraction_reply(reply)
        log.debug(f"Oracle proposed {len(events)} event(s) for {source.label}")
        return events

    async def compare(self, candidate: CandidateEvent, record: EventRecord) -> ComparisonResult:
        return parse_comparison_reply(await self._complete(comparison_prompt(candidate, record)))

    async def merge(self, record: EventRecord, candidate: CandidateEvent) -> MergeProposal:
        return parse_merge_reply(await self._complete(merge_prompt(record, candidate)))

    def _client_for_call(self) -> ResilientClient:
        if self._client is None:
            self._client = self.client_factory(self.config.resilience)
        return self._client

    async def _complete(self, prompt: str) -> str:
        body = {
            "model": self.config.model_id,
            "max_tokens": self.config.max_tokens,
            "system": system_prompt(self.config.personalization),
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {
            "x-api-key": self.config.api_key,
            "anthropic-version": self.config.api_version,
            "content-type": "application/json",
        }
        try:
            response = await self._client_for_call().post(MESSAGES_PATH, json=body, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise OracleInvocationError(f"Oracle returned HTTP {status}") from exc
        except httpx.HTTPError as exc:
            raise OracleInvocationError(f"Oracle request failed: {exc}") from exc

        try:
            message = MessagesResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise MalformedOracleResponse("Oracle envelope is not a messages response") from exc

        text = message.text.strip()
        if not text:
            raise MalformedOracleResponse("Oracle reply contained no text")
        return text


def build_http_oracle(*, config: OracleConfig | None = None) -> HttpEventOracle:
    return HttpEventOracle(config=config or get_oracle_config())


if TYPE_CHECKING:
    _oracle_check: EventOracle = HttpEventOracle()
