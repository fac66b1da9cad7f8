"""Adapter selection.

Purpose
-------
Map a provider identifier onto a fresh adapter instance. The vendor set is
closed: :class:`LLMProvider` lists every supported vendor and
:func:`create_adapter` matches it exhaustively.

A new adapter is returned on every call because some adapters (Anthropic)
keep per-stream state.

Fallback semantics
------------------
None. Unknown identifiers raise :class:`UnknownProviderError`.
"""

from __future__ import annotations

from enum import Enum
from typing import Union

from .interfaces import ProviderAdapter


class UnknownProviderError(ValueError):
    """Raised when a provider identifier is not one of :class:`LLMProvider`."""


class LLMProvider(str, Enum):
    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"

    @classmethod
    def parse(cls, value: Union[str, "LLMProvider"]) -> "LLMProvider":
        if isinstance(value, LLMProvider):
            return value
        name = (value or "").strip().lower()
        if name == "google":
            return cls.GEMINI
        try:
            return cls(name)
        except ValueError as exc:
            supported = ", ".join(p.value for p in cls)
            raise UnknownProviderError(f"Unknown provider {value!r}; expected one of: {supported}") from exc


def create_adapter(provider: Union[str, LLMProvider]) -> ProviderAdapter:
    """Return a new adapter for ``provider``."""
    # Vendor packages import base modules; import them lazily to keep base import-light.
    which = LLMProvider.parse(provider)
    if which is LLMProvider.OPENAI:
        from ..openai.client import OpenAIAdapter

        return OpenAIAdapter()
    if which is LLMProvider.GEMINI:
        from ..gemini.client import GeminiAdapter

        return GeminiAdapter()
    if which is LLMProvider.ANTHROPIC:
        from ..anthropic.client import AnthropicAdapter

        return AnthropicAdapter()
    raise UnknownProviderError(f"No adapter registered for {which.value!r}")  # pragma: no cover


__all__ = ["LLMProvider", "UnknownProviderError", "create_adapter"]
