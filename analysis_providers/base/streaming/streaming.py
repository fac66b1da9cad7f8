"""Streaming primitives shared by adapters, the orchestrator and callers.

Two layers of events exist:

* :class:`StreamChunk` is what a vendor adapter yields while decoding the
  SSE stream (visible content or thinking text), interleaved with
  :class:`~analysis_providers.base.tokens.UsageRecord` items.
* :class:`AnalysisStreamEvent` is what callers of an analysis stream consume:
  thinking text, progress ticks, one usage record and one terminal
  ``completed`` event carrying the decoded payload.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, Optional, Union

from ..tokens import UsageRecord


@dataclass(frozen=True)
class StreamChunk:
    """A text fragment from the model, before any JSON reassembly."""

    kind: Literal["content", "thinking"]
    text: str

    @classmethod
    def content(cls, text: str) -> "StreamChunk":
        return cls("content", text)

    @classmethod
    def thinking(cls, text: str) -> "StreamChunk":
        return cls("thinking", text)


# Items produced by ``ProviderAdapter.handle_stream_event``.
StreamItem = Union[StreamChunk, UsageRecord]


class AnalysisEventKind(str, Enum):
    THINKING = "thinking"
    INSIGHT_FOUND = "insight_found"
    QUIZ_QUESTION_FOUND = "quiz_question_found"
    USAGE = "usage"
    COMPLETED = "completed"


@dataclass(frozen=True)
class AnalysisStreamEvent:
    """One event of an analysis stream.

    Fields:
      kind: event tag
      text: thinking text (``THINKING`` only)
      usage: normalized usage (``USAGE`` only)
      payload: decoded structured payload (``COMPLETED`` only)

    A successful stream ends with exactly one ``COMPLETED`` event.
    """

    kind: AnalysisEventKind
    text: Optional[str] = None
    usage: Optional[UsageRecord] = None
    payload: Any = None

    @classmethod
    def thinking(cls, text: str) -> "AnalysisStreamEvent":
        return cls(AnalysisEventKind.THINKING, text=text)

    @classmethod
    def insight_found(cls) -> "AnalysisStreamEvent":
        return cls(AnalysisEventKind.INSIGHT_FOUND)

    @classmethod
    def quiz_question_found(cls) -> "AnalysisStreamEvent":
        return cls(AnalysisEventKind.QUIZ_QUESTION_FOUND)

    @classmethod
    def usage_event(cls, usage: UsageRecord) -> "AnalysisStreamEvent":
        return cls(AnalysisEventKind.USAGE, usage=usage)

    @classmethod
    def completed(cls, payload: Any) -> "AnalysisStreamEvent":
        return cls(AnalysisEventKind.COMPLETED, payload=payload)

    @property
    def is_terminal(self) -> bool:
        return self.kind is AnalysisEventKind.COMPLETED


__all__ = [
    "StreamChunk",
    "StreamItem",
    "AnalysisEventKind",
    "AnalysisStreamEvent",
]
