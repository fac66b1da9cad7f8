"""End-to-end streaming through ``StreamOrchestrator`` over a mocked transport.

Each vendor's stream is replayed from SSE fixtures; the tests check the
event sequence, single usage forwarding, usage normalization and the
non-streaming fallback.
"""
from __future__ import annotations

import json
from typing import List

import httpx
import pytest

from analysis_providers.anthropic import AnthropicAdapter
from analysis_providers.base.capture import MemoryCaptureSink
from analysis_providers.base.dto import ChapterAnalysis, ProviderRequestConfig, RequestPrompt
from analysis_providers.base.streaming import (
    AnalysisEventKind,
    StreamChunk,
    StreamOrchestrator,
    StreamState,
)
from analysis_providers.base.tokens import UsageRecord
from analysis_providers.gemini import GeminiAdapter
from analysis_providers.openai import OpenAIAdapter

ANALYSIS = json.dumps(
    {
        "annotations": [
            {"type": "science", "title": "Orbits", "content": "c1", "sourceBlockId": 1},
            {"type": "world", "title": "Drives", "content": "c2", "sourceBlockId": 2},
        ],
        "quizQuestions": [{"question": "Why?", "answer": "A", "sourceBlockId": 3}],
        "imageSuggestions": [],
        "summary": "Things happen.",
    }
)

OPENAI_USAGE = {
    "input_tokens": 100,
    "output_tokens": 50,
    "input_tokens_details": {"cached_tokens": 10},
    "output_tokens_details": {"reasoning_tokens": 10},
}


def _pieces(text: str, size: int = 7) -> List[str]:
    return [text[i : i + size] for i in range(0, len(text), size)]


def _openai_events(text: str, completed: int = 1) -> List[dict]:
    events: List[dict] = [
        {"type": "response.created"},
        {"type": "response.reasoning_summary_text.delta", "delta": "Considering the chapter."},
    ]
    events += [{"type": "response.output_text.delta", "delta": p} for p in _pieces(text)]
    events += [{"type": "response.completed", "response": {"usage": OPENAI_USAGE}}] * completed
    return events


def _config(model: str, **kw) -> ProviderRequestConfig:
    return ProviderRequestConfig(model=model, api_key="test-key-123", **kw)


@pytest.mark.asyncio
async def test_openai_analysis_event_sequence(mock_client, sse_body):
    client, handler = mock_client(httpx.Response(200, content=sse_body(_openai_events(ANALYSIS), done=True)))
    orch = StreamOrchestrator(OpenAIAdapter(), _config("gpt-5.2"), client=client, name_hint="analysis")
    events = [e async for e in orch.analysis_events(RequestPrompt.plain("chapter"), ChapterAnalysis)]

    kinds = [e.kind for e in events]
    assert kinds[0] is AnalysisEventKind.THINKING  # nosec B101 - assert is appropriate in unit tests
    assert kinds.count(AnalysisEventKind.INSIGHT_FOUND) == 2  # nosec B101 - assert is appropriate in unit tests
    assert kinds.count(AnalysisEventKind.QUIZ_QUESTION_FOUND) == 1  # nosec B101 - assert is appropriate in unit tests
    assert kinds.count(AnalysisEventKind.USAGE) == 1  # nosec B101 - assert is appropriate in unit tests
    assert kinds[-1] is AnalysisEventKind.COMPLETED and kinds.count(AnalysisEventKind.COMPLETED) == 1  # nosec B101 - assert is appropriate in unit tests

    payload = events[-1].payload
    assert isinstance(payload, ChapterAnalysis)  # nosec B101 - assert is appropriate in unit tests
    assert [a.title for a in payload.annotations] == ["Orbits", "Drives"]  # nosec B101 - assert is appropriate in unit tests

    usage = next(e.usage for e in events if e.kind is AnalysisEventKind.USAGE)
    assert usage == UsageRecord(input=100, visible_output=40, cached=10, reasoning=10)  # nosec B101 - assert is appropriate in unit tests
    assert orch.state is StreamState.COMPLETED  # nosec B101 - assert is appropriate in unit tests

    sent = handler.last_json
    assert sent["stream"] is True and sent["reasoning"] == {"effort": "medium"}  # nosec B101 - assert is appropriate in unit tests
    assert str(handler.requests[-1].url) == "https://api.openai.com/v1/responses"  # nosec B101 - assert is appropriate in unit tests
    assert handler.requests[-1].headers["Authorization"] == "Bearer test-key-123"  # nosec B101 - assert is appropriate in unit tests


@pytest.mark.asyncio
async def test_repeated_terminal_markers_forward_one_usage(mock_client, sse_body, log_records, find_events):
    client, _ = mock_client(httpx.Response(200, content=sse_body(_openai_events("hello", completed=2))))
    orch = StreamOrchestrator(OpenAIAdapter(), _config("gpt-5.2"), client=client)
    items = [i async for i in orch.stream_chunks(RequestPrompt.plain("hi"))]
    usages = [i for i in items if isinstance(i, UsageRecord)]
    assert len(usages) == 1  # nosec B101 - assert is appropriate in unit tests
    assert len(find_events(log_records, "stream.usage.duplicate")) == 1  # nosec B101 - assert is appropriate in unit tests
    end = find_events(log_records, "stream.adapter.end")
    assert len(end) == 1 and end[0]["tokens"]["total"] == 150  # nosec B101 - assert is appropriate in unit tests


@pytest.mark.asyncio
async def test_gemini_usage_only_from_finishing_chunk(mock_client, sse_body):
    chunks = [
        {
            "candidates": [{"content": {"role": "model", "parts": [{"text": "Weighing it", "thought": True}]}}],
            "usageMetadata": {"promptTokenCount": 1000, "candidatesTokenCount": 0, "thoughtsTokenCount": 50},
        },
        {
            "candidates": [{"content": {"role": "model", "parts": [{"text": "Hello "}]}}],
            "usageMetadata": {"promptTokenCount": 1000, "candidatesTokenCount": 120, "thoughtsTokenCount": 200},
        },
        {
            "candidates": [{"content": {"role": "model", "parts": [{"text": "world"}]}, "finishReason": "STOP"}],
            "usageMetadata": {"promptTokenCount": 1000, "candidatesTokenCount": 500, "thoughtsTokenCount": 200},
        },
    ]
    client, handler = mock_client(httpx.Response(200, content=sse_body(chunks, newline="\r\n")))
    orch = StreamOrchestrator(GeminiAdapter(), _config("gemini-3-flash-preview"), client=client)
    items = [i async for i in orch.stream_chunks(RequestPrompt.plain("hi"))]

    assert items[0] == StreamChunk.thinking("Weighing it")  # nosec B101 - assert is appropriate in unit tests
    text = "".join(i.text for i in items if isinstance(i, StreamChunk) and i.kind == "content")
    assert text == "Hello world"  # nosec B101 - assert is appropriate in unit tests
    usages = [i for i in items if isinstance(i, UsageRecord)]
    assert usages == [UsageRecord(input=1000, visible_output=500, cached=None, reasoning=200)]  # nosec B101 - assert is appropriate in unit tests
    assert usages[0].total == 1700  # nosec B101 - assert is appropriate in unit tests

    url = handler.requests[-1].url
    assert url.path.endswith("/models/gemini-3-flash-preview:streamGenerateContent")  # nosec B101 - assert is appropriate in unit tests
    assert url.params["alt"] == "sse" and url.params["key"] == "test-key-123"  # nosec B101 - assert is appropriate in unit tests


@pytest.mark.asyncio
async def test_anthropic_stream_with_event_lines_and_cache_usage(mock_client):
    frames = [
        ("message_start", {"type": "message_start", "message": {"content": [], "usage": {
            "input_tokens": 411, "cache_creation_input_tokens": 100, "cache_read_input_tokens": 50, "output_tokens": 1}}}),
        ("content_block_start", {"type": "content_block_start", "index": 0, "content_block": {"type": "thinking"}}),
        ("content_block_delta", {"type": "content_block_delta", "delta": {"type": "thinking_delta", "thinking": "Hmm."}}),
        ("content_block_delta", {"type": "content_block_delta", "delta": {"type": "text_delta", "text": "Answer"}}),
        ("ping", {"type": "ping"}),
        ("message_delta", {"type": "message_delta", "delta": {"stop_reason": "end_turn"}, "usage": {"output_tokens": 79}}),
        ("message_stop", {"type": "message_stop"}),
    ]
    body = "".join(f"event: {name}\ndata: {json.dumps(data)}\n\n" for name, data in frames).encode()
    client, handler = mock_client(httpx.Response(200, content=body))
    orch = StreamOrchestrator(AnthropicAdapter(), _config("claude-sonnet-4-5"), client=client)
    items = [i async for i in orch.stream_chunks(RequestPrompt.split("instructions ", "chapter"))]

    assert items[:2] == [StreamChunk.thinking("Hmm."), StreamChunk.content("Answer")]  # nosec B101 - assert is appropriate in unit tests
    assert items[2:] == [UsageRecord(input=511, visible_output=79, cached=50, reasoning=None)]  # nosec B101 - assert is appropriate in unit tests
    sent = handler.last_json
    assert sent["stream"] is True  # nosec B101 - assert is appropriate in unit tests
    assert sent["messages"][0]["content"][0]["cache_control"] == {"type": "ephemeral"}  # nosec B101 - assert is appropriate in unit tests


@pytest.mark.asyncio
async def test_body_without_data_lines_falls_back_to_non_streaming_parse(mock_client):
    body = {
        "output": [{"type": "message", "content": [{"type": "output_text", "text": "whole answer"}]}],
        "usage": OPENAI_USAGE,
    }
    client, _ = mock_client(httpx.Response(200, json=body))
    capture = MemoryCaptureSink()
    orch = StreamOrchestrator(OpenAIAdapter(), _config("gpt-5.2"), client=client, capture=capture, name_hint="fb")
    items = [i async for i in orch.stream_chunks(RequestPrompt.plain("hi"))]

    assert items == [  # nosec B101 - assert is appropriate in unit tests
        UsageRecord(input=100, visible_output=40, cached=10, reasoning=10),
        StreamChunk.content("whole answer"),
    ]
    assert len(capture.responses["fb"]) == 1 and capture.flushed == ["fb"]  # nosec B101 - assert is appropriate in unit tests


@pytest.mark.asyncio
async def test_done_sentinel_only_counts_as_payload(mock_client):
    client, _ = mock_client(httpx.Response(200, content=b"data: [DONE]\n\n"))
    orch = StreamOrchestrator(OpenAIAdapter(), _config("gpt-5.2"), client=client)
    items = [i async for i in orch.stream_chunks(RequestPrompt.plain("hi"))]
    assert items == []  # nosec B101 - assert is appropriate in unit tests


@pytest.mark.asyncio
async def test_undecodable_lines_are_skipped_and_chunks_captured(mock_client, sse_body):
    events = ["{not json", '"a bare string"', {"type": "response.output_text.delta", "delta": "ok"}]
    client, _ = mock_client(httpx.Response(200, content=sse_body(events)))
    capture = MemoryCaptureSink()
    orch = StreamOrchestrator(OpenAIAdapter(), _config("gpt-5.2"), client=client, capture=capture, name_hint="cap")
    items = [i async for i in orch.stream_chunks(RequestPrompt.plain("hi"))]
    assert items == [StreamChunk.content("ok")]  # nosec B101 - assert is appropriate in unit tests
    assert len(capture.chunks["cap"]) == 3  # nosec B101 - assert is appropriate in unit tests


@pytest.mark.asyncio
async def test_non_streaming_request_returns_text_and_usage(mock_client):
    body = {
        "content": [{"type": "text", "text": "{\"summary\": \"s\"}"}],
        "stop_reason": "end_turn",
        "usage": {"input_tokens": 10, "output_tokens": 5},
    }
    client, handler = mock_client(httpx.Response(200, json=body))
    orch = StreamOrchestrator(AnthropicAdapter(), _config("claude-haiku-4-5"), client=client)
    text, usage = await orch.request(RequestPrompt.plain("hi"))
    assert text == '{"summary": "s"}'  # nosec B101 - assert is appropriate in unit tests
    assert usage == UsageRecord(input=10, visible_output=5, cached=None)  # nosec B101 - assert is appropriate in unit tests
    assert "stream" not in handler.last_json  # nosec B101 - assert is appropriate in unit tests
    assert orch.state is StreamState.COMPLETED  # nosec B101 - assert is appropriate in unit tests
