"""Anthropic Messages API adapter.

Prompt caching: a split :class:`RequestPrompt` sends the prefix as its own
text block marked ``cache_control: ephemeral`` followed by the suffix block.

Usage accounting: ``input_tokens`` excludes cache writes, so the canonical
input adds ``cache_creation_input_tokens``; cache reads are reported as
``cached``. In a stream the input side arrives on ``message_start`` and the
final ``output_tokens`` on ``message_delta``; one usage record is produced, on
``message_delta``. The adapter therefore keeps per-stream state and a fresh
instance must be used for every stream.

A ``message_delta`` whose ``stop_reason`` is ``refusal`` ends the stream with
``API_ERROR`` carrying the text streamed so far.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from ..base.dto import ProviderRequestConfig, RequestPrompt
from ..base.errors import ProviderError
from ..base.interfaces import RequestDescriptor
from ..base.streaming.streaming import StreamChunk, StreamItem
from ..base.tokens import UsageRecord, normalize_anthropic_usage
from ..config.defaults import (
    ANTHROPIC_API_VERSION,
    ANTHROPIC_DEFAULT_BASE_URL,
    ANTHROPIC_STRUCTURED_OUTPUT_BETA,
)
from .wire import MessagesBody, MessagesUsage, StreamEvent

THINKING_MAX_TOKENS = 64_000
CAPABLE_MAX_TOKENS = 32_000
DEFAULT_MAX_TOKENS = 8_192
MIN_THINKING_BUDGET = 1_024
THINKING_HEADROOM = 4_000

REFUSAL_FALLBACK = "Claude refused to answer."

_THINKING_FAMILIES = ("sonnet-4", "opus-4", "haiku-4")


def can_think(model: str) -> bool:
    return any(family in model for family in _THINKING_FAMILIES)


def content_blocks(prompt: RequestPrompt) -> List[Dict[str, Any]]:
    """Encode ``prompt`` as Messages content blocks."""
    prefix = prompt.cache_prefix
    if prefix is not None and prefix.strip():
        blocks: List[Dict[str, Any]] = [
            {"type": "text", "text": prefix, "cache_control": {"type": "ephemeral"}}
        ]
        if prompt.cache_suffix:
            blocks.append({"type": "text", "text": prompt.cache_suffix})
        return blocks
    return [{"type": "text", "text": prompt.text}]


def usage_from_wire(usage: MessagesUsage, output_tokens: Optional[int] = None) -> UsageRecord:
    return normalize_anthropic_usage(
        usage.input_tokens,
        output_tokens if output_tokens is not None else usage.output_tokens,
        cache_creation_input_tokens=usage.cache_creation_input_tokens,
        cache_read_input_tokens=usage.cache_read_input_tokens,
    )


class AnthropicAdapter:
    """Adapter for the Messages API; one instance per stream."""

    provider_name = "anthropic"

    def __init__(self) -> None:
        self._start_usage: Optional[MessagesUsage] = None
        self._text: List[str] = []

    def build_request(self, prompt: RequestPrompt, config: ProviderRequestConfig) -> RequestDescriptor:
        capable = can_think(config.model)
        thinking = capable and config.reasoning.anthropic_enabled
        if thinking:
            max_tokens = THINKING_MAX_TOKENS
        elif capable:
            max_tokens = CAPABLE_MAX_TOKENS
        else:
            max_tokens = DEFAULT_MAX_TOKENS

        body: Dict[str, Any] = {
            "model": config.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": content_blocks(prompt)}],
        }
        if config.stream:
            body["stream"] = True
        if thinking:
            body["thinking"] = {
                "type": "enabled",
                "budget_tokens": max(MIN_THINKING_BUDGET, max_tokens - THINKING_HEADROOM),
            }
        else:
            body["temperature"] = config.temperature

        headers = {
            "x-api-key": config.api_key,
            "anthropic-version": ANTHROPIC_API_VERSION,
            "Content-Type": "application/json",
        }
        if config.output_schema is not None:
            body["output_format"] = {"type": "json_schema", "schema": config.output_schema.json_schema}
            headers["anthropic-beta"] = ANTHROPIC_STRUCTURED_OUTPUT_BETA

        base = (config.base_url or ANTHROPIC_DEFAULT_BASE_URL).rstrip("/")
        return RequestDescriptor(url=f"{base}/messages", headers=headers, body=body)

    def parse_non_streaming(self, body: bytes) -> Tuple[str, Optional[UsageRecord]]:
        try:
            parsed = MessagesBody.model_validate_json(body)
        except ValidationError as exc:
            raise ProviderError.invalid_response("Unexpected Anthropic response shape", raw=exc) from exc
        if parsed.error is not None and parsed.error.message:
            raise ProviderError.api_error(parsed.error.message)
        if parsed.stop_reason == "refusal":
            refusal = next((b.text for b in parsed.content if b.type == "text" and b.text), None)
            raise ProviderError.api_error(refusal or REFUSAL_FALLBACK)
        text = "".join(b.text for b in parsed.content if b.type == "text" and b.text)
        if not text:
            raise ProviderError.invalid_response("Anthropic response contained no text")
        usage = usage_from_wire(parsed.usage) if parsed.usage is not None else None
        return text, usage

    def handle_stream_event(self, event: Mapping[str, Any]) -> List[StreamItem]:
        try:
            parsed = StreamEvent.model_validate(event)
        except ValidationError as exc:
            raise ProviderError.invalid_response("Unexpected Anthropic stream event", raw=exc) from exc

        if parsed.type == "content_block_delta" and parsed.delta is not None:
            delta = parsed.delta
            if delta.type == "text_delta" and delta.text:
                self._text.append(delta.text)
                return [StreamChunk.content(delta.text)]
            if delta.type == "thinking_delta" and delta.thinking:
                return [StreamChunk.thinking(delta.thinking)]
            return []
        if parsed.type == "message_start":
            if parsed.message is not None:
                self._start_usage = parsed.message.usage
            return []
        if parsed.type == "message_delta":
            if parsed.delta is not None and parsed.delta.stop_reason == "refusal":
                raise ProviderError.api_error("".join(self._text).strip() or REFUSAL_FALLBACK)
            return [self._final_usage(parsed.usage)] if parsed.usage is not None else []
        if parsed.type == "error":
            message = parsed.error.message if parsed.error is not None else None
            raise ProviderError.api_error(message or "Unknown Anthropic stream error")
        return []

    def finish_stream(self) -> List[StreamItem]:
        return []

    def _final_usage(self, delta_usage: MessagesUsage) -> UsageRecord:
        start = self._start_usage or MessagesUsage()
        # Newer API versions repeat the input side on message_delta.
        merged = MessagesUsage(
            input_tokens=delta_usage.input_tokens if delta_usage.input_tokens is not None else start.input_tokens,
            cache_creation_input_tokens=(
                delta_usage.cache_creation_input_tokens
                if delta_usage.cache_creation_input_tokens is not None
                else start.cache_creation_input_tokens
            ),
            cache_read_input_tokens=(
                delta_usage.cache_read_input_tokens
                if delta_usage.cache_read_input_tokens is not None
                else start.cache_read_input_tokens
            ),
        )
        return usage_from_wire(merged, output_tokens=delta_usage.output_tokens)


__all__ = ["AnthropicAdapter", "can_think", "content_blocks", "usage_from_wire"]
