from __future__ import annotations

import asyncio
import json
from collections.abc import Callable  # noqa: TC003

import httpx
import pytest

from eventdigest.adapters.http_resilience import ResilienceConfig, ResilientClient
from eventdigest.adapters.oracle import HttpEventOracle
from eventdigest.config import OracleConfig, Personalization
from eventdigest.domain.errors import MalformedOracleResponse, OracleInvocationError
from eventdigest.domain.model import Confidence, SourceKind
from tests.helpers.events import make_candidate, make_record, make_source


def _make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
    created: list[ResilientClient] | None = None,
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            base_url="https://oracle.test",
            transport=httpx.MockTransport(async_handler),
        )
        if created is not None:
            created.append(client)
        return client

    return factory


def _config() -> OracleConfig:
    return OracleConfig(
        api_key="test-key",
        model_id="test-model",
        resilience=ResilienceConfig(name="oracle-test"),
        personalization=Personalization(child_name="Emma", parent_names=("Anna", "Lars")),
    )


def _reply(text: str) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "id": "msg_1",
            "model": "test-model",
            "content": [{"type": "text", "text": text}],
            "stop_reason": "end_turn",
        },
    )


def test_extract_sends_messages_request() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return _reply('[{"EventTitle": "Zoo Trip", "EventDate": "2025-10-25"}]')

    oracle = HttpEventOracle(config=_config(), client_factory=_make_client_factory(handler))
    source = make_source("m1", kind=SourceKind.MESSAGE, sender="Teacher Mette")

    events = asyncio.run(oracle.extract(source))

    assert [event.title for event in events] == ["Zoo Trip"]
    request = requests[0]
    assert request.method == "POST"
    assert request.url.path == "/v1/messages"
    assert request.headers["x-api-key"] == "test-key"
    assert request.headers["anthropic-version"] == "2023-06-01"
    body = json.loads(request.content)
    assert body["model"] == "test-model"
    assert "Emma" in body["system"]
    assert "Message From: Teacher Mette" in body["messages"][0]["content"]


def test_compare_and_merge_parse_replies() -> None:
    replies = iter(
        [
            _reply('{"isSameEvent": true, "confidence": "medium", "reason": "Same zoo"}'),
            _reply('{"EventTitle": "Zoo Trip", "MergeNotes": "No changes, just confirmation"}'),
        ]
    )

    def handler(_request: httpx.Request) -> httpx.Response:
        return next(replies)

    oracle = HttpEventOracle(config=_config(), client_factory=_make_client_factory(handler))

    async def scenario() -> None:
        async with oracle:
            comparison = await oracle.compare(make_candidate(), make_record())
            proposal = await oracle.merge(make_record(), make_candidate())
        assert comparison.is_same_event is True
        assert comparison.confidence is Confidence.MEDIUM
        assert proposal.merge_notes == "No changes, just confirmation"

    asyncio.run(scenario())


def test_one_client_is_shared_until_closed() -> None:
    created: list[ResilientClient] = []

    def handler(_request: httpx.Request) -> httpx.Response:
        return _reply("[]")

    oracle = HttpEventOracle(
        config=_config(), client_factory=_make_client_factory(handler, created)
    )

    async def scenario() -> None:
        await oracle.extract(make_source("10"))
        await oracle.extract(make_source("11"))
        await oracle.aclose()
        await oracle.extract(make_source("12"))
        await oracle.aclose()

    asyncio.run(scenario())

    assert len(created) == 2


def test_http_error_status_raises_invocation_error() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": {"type": "api_error"}})

    oracle = HttpEventOracle(config=_config(), client_factory=_make_client_factory(handler))

    with pytest.raises(OracleInvocationError, match="HTTP 500"):
        asyncio.run(oracle.extract(make_source("10")))


def test_transport_failure_raises_invocation_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    oracle = HttpEventOracle(config=_config(), client_factory=_make_client_factory(handler))

    with pytest.raises(OracleInvocationError):
        asyncio.run(oracle.extract(make_source("10")))


def test_non_json_envelope_is_malformed() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    oracle = HttpEventOracle(config=_config(), client_factory=_make_client_factory(handler))

    with pytest.raises(MalformedOracleResponse):
        asyncio.run(oracle.extract(make_source("10")))


def test_empty_reply_text_is_malformed() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return _reply("   ")

    oracle = HttpEventOracle(config=_config(), client_factory=_make_client_factory(handler))

    with pytest.raises(MalformedOracleResponse):
        asyncio.run(oracle.extract(make_source("10")))
