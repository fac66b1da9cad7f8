"""Failure paths of ``StreamOrchestrator``: status errors, transport errors,
mid-stream error events, missing keys and consumer cancellation."""
from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from analysis_providers.base.dto import ChapterAnalysis, ProviderRequestConfig, RequestPrompt
from analysis_providers.base.errors import ErrorCode, ProviderError
from analysis_providers.base.streaming import (
    AnalysisEventKind,
    StreamChunk,
    StreamController,
    StreamOrchestrator,
    StreamState,
)
from analysis_providers.gemini import GeminiAdapter
from analysis_providers.openai import OpenAIAdapter

PROMPT = RequestPrompt.plain("hello")


def _orch(client, api_key: str = "test-key-123") -> StreamOrchestrator:
    config = ProviderRequestConfig(model="gpt-5.2", api_key=api_key)
    return StreamOrchestrator(OpenAIAdapter(), config, client=client)


async def _drain(orch: StreamOrchestrator) -> list:
    return [item async for item in orch.stream_chunks(PROMPT)]


@pytest.mark.asyncio
async def test_status_with_vendor_message_is_api_error(mock_client):
    body = {"error": {"message": "Rate limit reached for gpt-5.2 in organization org-x", "type": "requests"}}
    client, _ = mock_client(httpx.Response(429, json=body))
    orch = _orch(client)
    with pytest.raises(ProviderError) as ei:
        await _drain(orch)
    err = ei.value
    assert err.code is ErrorCode.API_ERROR  # nosec B101 - assert is appropriate in unit tests
    assert err.message == "Rate limit reached for gpt-5.2 in organization org-x"  # nosec B101 - assert is appropriate in unit tests
    assert err.friendly_message == err.message  # nosec B101 - assert is appropriate in unit tests
    assert err.status_code == 429  # nosec B101 - assert is appropriate in unit tests
    assert (err.provider, err.model) == ("openai", "gpt-5.2")  # nosec B101 - assert is appropriate in unit tests
    assert orch.state is StreamState.FAILED  # nosec B101 - assert is appropriate in unit tests


@pytest.mark.asyncio
async def test_status_without_body_is_http_error(mock_client):
    client, _ = mock_client(httpx.Response(401))
    with pytest.raises(ProviderError) as ei:
        await _drain(_orch(client))
    assert ei.value.code is ErrorCode.HTTP_ERROR  # nosec B101 - assert is appropriate in unit tests
    assert ei.value.status_code == 401  # nosec B101 - assert is appropriate in unit tests
    assert ei.value.friendly_message == "API key rejected. Check your key or provider."  # nosec B101 - assert is appropriate in unit tests


@pytest.mark.asyncio
async def test_non_json_error_body_degrades_to_status(mock_client):
    client, _ = mock_client(httpx.Response(502, text="<html>Bad gateway</html>"))
    with pytest.raises(ProviderError) as ei:
        await _orch(client).request(PROMPT)
    assert ei.value.code is ErrorCode.HTTP_ERROR  # nosec B101 - assert is appropriate in unit tests
    assert ei.value.friendly_message == "HTTP error: 502"  # nosec B101 - assert is appropriate in unit tests


@pytest.mark.asyncio
async def test_gemini_array_wrapped_error_body(mock_client):
    body = [{"error": {"code": 400, "message": "API key not valid.", "status": "INVALID_ARGUMENT"}}]
    client, _ = mock_client(httpx.Response(400, json=body))
    config = ProviderRequestConfig(model="gemini-3-flash-preview", api_key="k")
    orch = StreamOrchestrator(GeminiAdapter(), config, client=client)
    with pytest.raises(ProviderError) as ei:
        await _drain(orch)
    assert ei.value.code is ErrorCode.API_ERROR  # nosec B101 - assert is appropriate in unit tests
    assert ei.value.message == "API key not valid."  # nosec B101 - assert is appropriate in unit tests


@pytest.mark.asyncio
@pytest.mark.parametrize("key", ["", "   "])
async def test_blank_key_fails_before_any_request(mock_client, key):
    client, handler = mock_client(httpx.Response(200))
    orch = _orch(client, api_key=key)
    with pytest.raises(ProviderError) as ei:
        await _drain(orch)
    assert ei.value.code is ErrorCode.NO_API_KEY  # nosec B101 - assert is appropriate in unit tests
    assert ei.value.friendly_message == "No API key configured for openai"  # nosec B101 - assert is appropriate in unit tests
    assert handler.requests == []  # nosec B101 - assert is appropriate in unit tests
    with pytest.raises(ProviderError):
        await orch.request(PROMPT)
    assert handler.requests == []  # nosec B101 - assert is appropriate in unit tests


@pytest.mark.asyncio
async def test_transport_failure_is_http_error_without_status(mock_client):
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client, _ = mock_client(refuse)
    with pytest.raises(ProviderError) as ei:
        await _drain(_orch(client))
    err = ei.value
    assert err.code is ErrorCode.HTTP_ERROR and err.status_code is None  # nosec B101 - assert is appropriate in unit tests
    assert isinstance(err.raw, httpx.ConnectError)  # nosec B101 - assert is appropriate in unit tests
    assert err.friendly_message == "Network error. Check your connection."  # nosec B101 - assert is appropriate in unit tests

    with pytest.raises(ProviderError) as ei2:
        await _orch(client).request(PROMPT)
    assert ei2.value.status_code is None  # nosec B101 - assert is appropriate in unit tests


@pytest.mark.asyncio
async def test_mid_stream_error_event_after_content(mock_client, sse_body, log_records, find_events):
    events = [
        {"type": "response.output_text.delta", "delta": "partial"},
        {"type": "error", "message": "The server is overloaded"},
    ]
    client, _ = mock_client(httpx.Response(200, content=sse_body(events)))
    orch = _orch(client)
    seen = []
    with pytest.raises(ProviderError) as ei:
        async for item in orch.stream_chunks(PROMPT):
            seen.append(item)
    assert seen == [StreamChunk.content("partial")]  # nosec B101 - assert is appropriate in unit tests
    assert ei.value.code is ErrorCode.API_ERROR  # nosec B101 - assert is appropriate in unit tests
    assert ei.value.message == "The server is overloaded"  # nosec B101 - assert is appropriate in unit tests
    failed = find_events(log_records, "stream.adapter.error")
    assert len(failed) == 1 and failed[0]["error_code"] == "api_error"  # nosec B101 - assert is appropriate in unit tests
    assert failed[0]["emitted"] is True  # nosec B101 - assert is appropriate in unit tests


@pytest.mark.asyncio
async def test_legacy_error_shape_and_response_failed(mock_client, sse_body):
    client, _ = mock_client(httpx.Response(200, content=sse_body([{"type": "error", "error": {"message": "old"}}])))
    with pytest.raises(ProviderError, match="old"):
        await _drain(_orch(client))

    failed = {"type": "response.failed", "response": {"error": {"message": "quota"}}}
    client, _ = mock_client(httpx.Response(200, content=sse_body([failed])))
    with pytest.raises(ProviderError) as ei:
        await _drain(_orch(client))
    assert ei.value.message == "quota"  # nosec B101 - assert is appropriate in unit tests


@pytest.mark.asyncio
async def test_undecodable_analysis_text_is_invalid_response(mock_client, sse_body):
    events = [{"type": "response.output_text.delta", "delta": "I cannot produce JSON today"}]
    client, _ = mock_client(httpx.Response(200, content=sse_body(events)))
    orch = _orch(client)
    kinds = []
    with pytest.raises(ProviderError) as ei:
        async for event in orch.analysis_events(PROMPT, ChapterAnalysis):
            kinds.append(event.kind)
    assert ei.value.code is ErrorCode.INVALID_RESPONSE  # nosec B101 - assert is appropriate in unit tests
    assert AnalysisEventKind.COMPLETED not in kinds  # nosec B101 - assert is appropriate in unit tests
    assert orch.state is StreamState.FAILED  # nosec B101 - assert is appropriate in unit tests


@pytest.mark.asyncio
async def test_cancel_mid_stream_delivers_nothing_further(mock_client):
    release = asyncio.Event()
    usage = {"input_tokens": 5, "output_tokens": 5}

    async def body():
        yield b'data: {"type": "response.reasoning_summary_text.delta", "delta": "thinking"}\n\n'
        await release.wait()
        yield b'data: {"type": "response.output_text.delta", "delta": "{}"}\n\n'
        yield ("data: " + json.dumps({"type": "response.completed", "response": {"usage": usage}}) + "\n\n").encode()

    client, _ = mock_client(lambda request: httpx.Response(200, content=body()))
    orch = _orch(client)
    ctl = StreamController(orch.analysis_events(PROMPT, ChapterAnalysis), name="cancel-test")

    first = await ctl.__anext__()
    assert first.kind is AnalysisEventKind.THINKING  # nosec B101 - assert is appropriate in unit tests

    ctl.cancel("user navigated away")
    await ctl.aclose()
    release.set()

    assert await ctl.collect() == []  # nosec B101 - assert is appropriate in unit tests
    assert ctl.cancel_reason == "user navigated away"  # nosec B101 - assert is appropriate in unit tests
    assert ctl.terminal_event is None  # nosec B101 - assert is appropriate in unit tests
    assert orch.state is StreamState.FAILED  # nosec B101 - assert is appropriate in unit tests


@pytest.mark.asyncio
async def test_streamed_refusal_without_terminal_event_is_api_error(mock_client, sse_body):
    events = [
        {"type": "response.refusal.delta", "delta": "I'm sorry, "},
        {"type": "response.refusal.delta", "delta": "I can't help with that."},
    ]
    client, _ = mock_client(httpx.Response(200, content=sse_body(events, done=True)))
    orch = _orch(client)
    with pytest.raises(ProviderError) as ei:
        async for _ in orch.analysis_events(PROMPT, ChapterAnalysis):
            pass
    assert ei.value.code is ErrorCode.API_ERROR  # nosec B101 - assert is appropriate in unit tests
    assert ei.value.message == "I'm sorry, I can't help with that."  # nosec B101 - assert is appropriate in unit tests
    assert orch.state is StreamState.FAILED  # nosec B101 - assert is appropriate in unit tests
