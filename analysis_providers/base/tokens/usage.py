"""Canonical token usage record and per-vendor normalization.

Each vendor reports usage differently:

OpenAI (Responses API)
    ``output_tokens`` already includes reasoning tokens, so the visible share
    is ``output_tokens - output_tokens_details.reasoning_tokens``. Cached
    input is reported in ``input_tokens_details.cached_tokens`` and is part of
    ``input_tokens``.
Gemini
    ``candidatesTokenCount`` (visible) and ``thoughtsTokenCount`` (reasoning)
    are disjoint. Streamed usage is only final on the chunk that carries a
    ``finishReason``; picking that chunk is the adapter's job.
Anthropic
    ``input_tokens`` excludes cache writes, so
    ``input = input_tokens + cache_creation_input_tokens``; cache reads are
    reported as ``cached``. Output arrives only on ``message_delta``.

The normalizers are pure functions over plain integers. Missing or negative
values are treated as zero for required fields and ``None`` for optional ones.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class UsageRecord:
    """Token usage for one request in canonical form.

    ``visible_output`` never includes reasoning tokens, so ``total`` counts
    every billed output token exactly once.
    """

    input: int
    visible_output: int
    cached: Optional[int] = None
    reasoning: Optional[int] = None

    @property
    def total(self) -> int:
        return self.input + self.visible_output + (self.reasoning or 0)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["total"] = self.total
        return data


def _count(value: Any) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return 0
    return max(n, 0)


def _optional_count(value: Any) -> Optional[int]:
    return None if value is None else _count(value)


def normalize_openai_usage(
    input_tokens: Any,
    output_tokens: Any,
    *,
    cached_tokens: Any = None,
    reasoning_tokens: Any = None,
) -> UsageRecord:
    """Normalize an OpenAI Responses ``usage`` block."""
    output = _count(output_tokens)
    reasoning = _optional_count(reasoning_tokens)
    visible = max(output - (reasoning or 0), 0)
    return UsageRecord(
        input=_count(input_tokens),
        visible_output=visible,
        cached=_optional_count(cached_tokens),
        reasoning=reasoning,
    )


def normalize_gemini_usage(
    prompt_token_count: Any,
    candidates_token_count: Any,
    *,
    thoughts_token_count: Any = None,
    cached_content_token_count: Any = None,
) -> UsageRecord:
    """Normalize a Gemini ``usageMetadata`` block (terminal chunk only)."""
    return UsageRecord(
        input=_count(prompt_token_count),
        visible_output=_count(candidates_token_count),
        cached=_optional_count(cached_content_token_count),
        reasoning=_optional_count(thoughts_token_count),
    )


def normalize_anthropic_usage(
    input_tokens: Any,
    output_tokens: Any,
    *,
    cache_creation_input_tokens: Any = None,
    cache_read_input_tokens: Any = None,
) -> UsageRecord:
    """Normalize Anthropic Messages usage fields."""
    return UsageRecord(
        input=_count(input_tokens) + _count(cache_creation_input_tokens),
        visible_output=_count(output_tokens),
        cached=_optional_count(cache_read_input_tokens),
        reasoning=None,
    )


__all__ = [
    "UsageRecord",
    "normalize_openai_usage",
    "normalize_gemini_usage",
    "normalize_anthropic_usage",
]
