"""Token usage helpers package."""

from .usage import (
    UsageRecord,
    normalize_anthropic_usage,
    normalize_gemini_usage,
    normalize_openai_usage,
)

__all__ = [
    "UsageRecord",
    "normalize_openai_usage",
    "normalize_gemini_usage",
    "normalize_anthropic_usage",
]
