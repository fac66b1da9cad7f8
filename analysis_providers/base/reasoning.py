"""Reasoning effort levels and their per-vendor encodings."""
from __future__ import annotations

from enum import Enum


class ReasoningLevel(str, Enum):
    """How much internal deliberation to request from a model.

    ``OFF`` disables thinking where a vendor allows it; vendors whose models
    always reason receive their lowest effort instead.
    """

    OFF = "off"
    MINIMAL = "minimal"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    XHIGH = "xhigh"

    @property
    def api_effort(self) -> str:
        return "minimal" if self is ReasoningLevel.OFF else self.value

    @property
    def openai_effort(self) -> str:
        """Value for the Responses API ``reasoning.effort`` field."""
        return self.api_effort

    def gemini3_level(self, is_flash: bool) -> str:
        """Value for Gemini 3 ``thinkingLevel``.

        Flash accepts the fine-grained levels up to ``high``; Pro only knows
        ``low`` and ``high``.
        """
        if is_flash:
            return "high" if self is ReasoningLevel.XHIGH else self.api_effort
        if self in (ReasoningLevel.OFF, ReasoningLevel.MINIMAL, ReasoningLevel.LOW):
            return "low"
        return "high"

    @property
    def anthropic_enabled(self) -> bool:
        return self is not ReasoningLevel.OFF


__all__ = ["ReasoningLevel"]
