"""Gemini generateContent adapter.

Model capabilities are inferred from the model id:

* ``gemini-3*`` always thinks and takes a ``thinkingLevel``.
* ``gemini-2.5-*pro*`` always thinks; ``gemini-2.5-*flash*`` thinks unless
  reasoning is off. Both take a dynamic ``thinkingBudget`` of ``-1``.
* Image models never think and have a smaller output budget.

Usage metadata appears on many streamed chunks but is only final on the
chunk whose candidate carries ``finishReason``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from ..base.dto import ProviderRequestConfig, RequestPrompt
from ..base.errors import ProviderError
from ..base.interfaces import RequestDescriptor
from ..base.reasoning import ReasoningLevel
from ..base.streaming.streaming import StreamChunk, StreamItem
from ..base.tokens import UsageRecord, normalize_gemini_usage
from ..config.defaults import GEMINI_DEFAULT_BASE_URL
from .wire import Candidate, GenerateContentResponse, UsageMetadata

THINKING_MAX_OUTPUT_TOKENS = 65_536
IMAGE_MAX_OUTPUT_TOKENS = 32_768
MODERN_MAX_OUTPUT_TOKENS = 65_536
LEGACY_MAX_OUTPUT_TOKENS = 8_192

SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


def _is_gemini3(model: str) -> bool:
    return "gemini-3" in model


def _is_gemini25(model: str) -> bool:
    return "gemini-2.5" in model and "image" not in model


def is_thinking(model: str, reasoning: ReasoningLevel) -> bool:
    """Return True when the request will run with thinking enabled."""
    always = _is_gemini3(model) or (_is_gemini25(model) and "pro" in model)
    toggles = _is_gemini25(model) and "flash" in model
    return always or (toggles and reasoning is not ReasoningLevel.OFF)


def max_output_tokens(model: str, thinking: bool) -> int:
    if thinking:
        return THINKING_MAX_OUTPUT_TOKENS
    if "image" in model:
        return IMAGE_MAX_OUTPUT_TOKENS
    if "gemini-3" in model or "gemini-2.5" in model:
        return MODERN_MAX_OUTPUT_TOKENS
    return LEGACY_MAX_OUTPUT_TOKENS


def usage_from_wire(meta: UsageMetadata) -> UsageRecord:
    return normalize_gemini_usage(
        meta.prompt_token_count,
        meta.candidates_token_count,
        thoughts_token_count=meta.thoughts_token_count,
        cached_content_token_count=meta.cached_content_token_count,
    )


def _first_candidate(resp: GenerateContentResponse) -> Optional[Candidate]:
    return resp.candidates[0] if resp.candidates else None


class GeminiAdapter:
    """Stateless adapter for ``generateContent``/``streamGenerateContent``."""

    provider_name = "gemini"

    def build_request(self, prompt: RequestPrompt, config: ProviderRequestConfig) -> RequestDescriptor:
        model = config.model
        thinking = is_thinking(model, config.reasoning)
        generation: Dict[str, Any] = {
            "temperature": config.temperature,
            "maxOutputTokens": max_output_tokens(model, thinking),
        }
        if config.output_schema is not None:
            generation["responseMimeType"] = "application/json"
            generation["responseJsonSchema"] = config.output_schema.json_schema
        else:
            generation["responseMimeType"] = "text/plain"

        if _is_gemini3(model):
            generation["thinking_config"] = {
                "thinkingLevel": config.reasoning.gemini3_level("flash" in model),
                "include_thoughts": True,
            }
        elif thinking:
            generation["thinking_config"] = {"thinkingBudget": -1, "include_thoughts": True}

        body: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt.text}]}],
            "safetySettings": [{"category": c, "threshold": "BLOCK_NONE"} for c in SAFETY_CATEGORIES],
            "generationConfig": generation,
        }
        base = (config.base_url or GEMINI_DEFAULT_BASE_URL).rstrip("/")
        if config.stream:
            url = f"{base}/models/{model}:streamGenerateContent"
            params = {"alt": "sse", "key": config.api_key}
        else:
            url = f"{base}/models/{model}:generateContent"
            params = {"key": config.api_key}
        return RequestDescriptor(
            url=url,
            headers={"Content-Type": "application/json"},
            body=body,
            params=params,
        )

    def parse_non_streaming(self, body: bytes) -> Tuple[str, Optional[UsageRecord]]:
        try:
            parsed = GenerateContentResponse.model_validate_json(body)
        except ValidationError as exc:
            raise ProviderError.invalid_response("Unexpected Gemini response shape", raw=exc) from exc
        if parsed.error is not None and parsed.error.message:
            raise ProviderError.api_error(parsed.error.message)
        candidate = _first_candidate(parsed)
        if candidate is None or candidate.content is None:
            raise ProviderError.invalid_response("Gemini response has no candidate content")
        text = "".join(p.text for p in candidate.content.parts if p.text and not p.thought)
        if not text:
            raise ProviderError.invalid_response("Gemini response contained no text")
        usage = usage_from_wire(parsed.usage_metadata) if parsed.usage_metadata is not None else None
        return text, usage

    def handle_stream_event(self, event: Mapping[str, Any]) -> List[StreamItem]:
        try:
            parsed = GenerateContentResponse.model_validate(event)
        except ValidationError as exc:
            raise ProviderError.invalid_response("Unexpected Gemini stream event", raw=exc) from exc
        if parsed.error is not None and parsed.error.message:
            raise ProviderError.api_error(parsed.error.message)

        items: List[StreamItem] = []
        candidate = _first_candidate(parsed)
        if candidate is not None and candidate.content is not None:
            for part in candidate.content.parts:
                if not part.text:
                    continue
                items.append(StreamChunk.thinking(part.text) if part.thought else StreamChunk.content(part.text))
        # Earlier chunks carry running totals; only the finishing chunk is final.
        if candidate is not None and candidate.finish_reason and parsed.usage_metadata is not None:
            items.append(usage_from_wire(parsed.usage_metadata))
        return items

    def finish_stream(self) -> List[StreamItem]:
        return []


__all__ = ["GeminiAdapter", "is_thinking", "max_output_tokens", "usage_from_wire"]
