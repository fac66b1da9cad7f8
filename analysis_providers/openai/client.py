"""OpenAI Responses API adapter.

Request shape (``POST {base_url}/responses``, bearer auth)::

    {"model", "input": [{"role": "user", "content": [{"type": "input_text", "text"}]}],
     "stream", "max_output_tokens", "temperature" | "reasoning": {"effort"},
     "text": {"format": {"type": "json_schema", "name", "schema", "strict": true}}}

Usage accounting: ``output_tokens`` includes reasoning tokens, so the
visible share is derived by subtraction. Streamed usage is read only from the
``response.completed`` event.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from ..base.dto import ProviderRequestConfig, RequestPrompt
from ..base.errors import ProviderError
from ..base.interfaces import RequestDescriptor
from ..base.streaming.streaming import StreamChunk, StreamItem
from ..base.tokens import UsageRecord, normalize_openai_usage
from ..config.defaults import OPENAI_DEFAULT_BASE_URL
from .wire import ResponsesBody, ResponsesUsage, StreamEvent

REASONING_MAX_OUTPUT_TOKENS = 100_000
DEFAULT_MAX_OUTPUT_TOKENS = 16_384

REFUSAL_FALLBACK = "The model refused to answer."

_REASONING_MARKERS = ("gpt-5", "o1", "o3")


def is_reasoning_model(model: str) -> bool:
    """Return True for model families that accept ``reasoning.effort``."""
    m = model.lower()
    return any(marker in m for marker in _REASONING_MARKERS)


def usage_from_wire(usage: ResponsesUsage) -> UsageRecord:
    return normalize_openai_usage(
        usage.input_tokens,
        usage.output_tokens,
        cached_tokens=usage.input_tokens_details.cached_tokens if usage.input_tokens_details else None,
        reasoning_tokens=usage.output_tokens_details.reasoning_tokens if usage.output_tokens_details else None,
    )


class OpenAIAdapter:
    """Adapter for the Responses API; one instance per stream.

    Streamed refusal text is collected from ``response.refusal.delta`` and
    raised as ``API_ERROR`` once the refusal is done or the stream ends.
    """

    provider_name = "openai"

    def __init__(self) -> None:
        self._refusal: List[str] = []

    def _refused(self, text: Optional[str] = None) -> ProviderError:
        message = text or "".join(self._refusal)
        return ProviderError.api_error(message.strip() or REFUSAL_FALLBACK)

    def build_request(self, prompt: RequestPrompt, config: ProviderRequestConfig) -> RequestDescriptor:
        reasoning = is_reasoning_model(config.model)
        body: Dict[str, Any] = {
            "model": config.model,
            "input": [
                {
                    "role": "user",
                    "content": [{"type": "input_text", "text": prompt.text}],
                }
            ],
            "stream": config.stream,
            "max_output_tokens": REASONING_MAX_OUTPUT_TOKENS if reasoning else DEFAULT_MAX_OUTPUT_TOKENS,
        }
        if reasoning:
            body["reasoning"] = {"effort": config.reasoning.openai_effort}
        else:
            body["temperature"] = config.temperature
        if config.output_schema is not None:
            body["text"] = {
                "format": {
                    "type": "json_schema",
                    "name": config.output_schema.name,
                    "schema": config.output_schema.json_schema,
                    "strict": True,
                }
            }
        base = (config.base_url or OPENAI_DEFAULT_BASE_URL).rstrip("/")
        return RequestDescriptor(
            url=f"{base}/responses",
            headers={
                "Authorization": f"Bearer {config.api_key}",
                "Content-Type": "application/json",
            },
            body=body,
        )

    def parse_non_streaming(self, body: bytes) -> Tuple[str, Optional[UsageRecord]]:
        try:
            parsed = ResponsesBody.model_validate_json(body)
        except ValidationError as exc:
            raise ProviderError.invalid_response("Unexpected OpenAI response shape", raw=exc) from exc
        if parsed.error is not None and parsed.error.message:
            raise ProviderError.api_error(parsed.error.message)

        message = next((item for item in parsed.output if item.type == "message"), None)
        if message is None:
            raise ProviderError.invalid_response("OpenAI response has no message output")
        texts: List[str] = []
        for part in message.content:
            if part.type == "refusal" or part.refusal:
                raise ProviderError.api_error(part.refusal or part.text or REFUSAL_FALLBACK)
            if part.type == "output_text" and part.text:
                texts.append(part.text)
        text = "".join(texts)
        if not text:
            raise ProviderError.invalid_response("OpenAI response contained no text")
        usage = usage_from_wire(parsed.usage) if parsed.usage is not None else None
        return text, usage

    def handle_stream_event(self, event: Mapping[str, Any]) -> List[StreamItem]:
        try:
            parsed = StreamEvent.model_validate(event)
        except ValidationError as exc:
            raise ProviderError.invalid_response("Unexpected OpenAI stream event", raw=exc) from exc

        if parsed.type == "response.output_text.delta":
            return [StreamChunk.content(parsed.delta)] if parsed.delta else []
        if parsed.type == "response.reasoning_summary_text.delta":
            return [StreamChunk.thinking(parsed.delta)] if parsed.delta else []
        if parsed.type == "response.refusal.delta":
            if parsed.delta:
                self._refusal.append(parsed.delta)
            return []
        if parsed.type == "response.refusal.done":
            raise self._refused(parsed.refusal)
        if parsed.type == "response.completed":
            if self._refusal:
                raise self._refused()
            if parsed.response is not None and parsed.response.usage is not None:
                return [usage_from_wire(parsed.response.usage)]
            return []
        if parsed.type == "response.failed":
            err = parsed.response.error if parsed.response is not None else None
            raise ProviderError.api_error((err.message if err else None) or "OpenAI response failed")
        if parsed.type == "error":
            message = (parsed.error.message if parsed.error else None) or parsed.message
            raise ProviderError.api_error(message or "Unknown OpenAI stream error")
        return []

    def finish_stream(self) -> List[StreamItem]:
        if self._refusal:
            raise self._refused()
        return []


__all__ = ["OpenAIAdapter", "is_reasoning_model", "usage_from_wire"]
