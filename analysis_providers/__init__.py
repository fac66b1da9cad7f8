"""analysis_providers package

Unified asynchronous client for chapter analysis over three vendor APIs
(OpenAI Responses, Google Gemini, Anthropic Messages).

Purpose:
    Stream vendor responses, surface progress while structured JSON is being
    generated, normalize token accounting, decode the final payload into
    pydantic models and report failures through one error taxonomy.

Public API (re-exported):
    - Version: ``__version__``
    - Exceptions: :class:`ProviderError`, :class:`ErrorCode`
    - Factory: :func:`create_adapter`, :class:`LLMProvider`
    - Service: :class:`LLMService`
    - Streaming: :class:`StreamController`, :class:`AnalysisStreamEvent`,
      :class:`StreamChunk`, :class:`UsageRecord`
"""

from .base.errors import ErrorCode, ProviderError
from .base.factory import LLMProvider, UnknownProviderError, create_adapter
from .base.reasoning import ReasoningLevel
from .base.streaming import AnalysisEventKind, AnalysisStreamEvent, StreamChunk, StreamController
from .base.tokens import UsageRecord
from .service import LLMService

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ProviderError",
    "ErrorCode",
    "LLMProvider",
    "UnknownProviderError",
    "create_adapter",
    "ReasoningLevel",
    "AnalysisEventKind",
    "AnalysisStreamEvent",
    "StreamChunk",
    "StreamController",
    "UsageRecord",
    "LLMService",
]
