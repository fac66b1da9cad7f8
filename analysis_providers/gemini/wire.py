"""Pydantic views of the Gemini generateContent wire format.

Streaming and non-streaming responses share the same shape: every SSE
payload is a complete ``GenerateContentResponse`` fragment.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Part(_Wire):
    text: Optional[str] = None
    thought: bool = False


class Content(_Wire):
    role: Optional[str] = None
    parts: List[Part] = Field(default_factory=list)


class Candidate(_Wire):
    content: Optional[Content] = None
    finish_reason: Optional[str] = Field(default=None, alias="finishReason")


class UsageMetadata(_Wire):
    prompt_token_count: int = Field(default=0, alias="promptTokenCount")
    candidates_token_count: int = Field(default=0, alias="candidatesTokenCount")
    thoughts_token_count: Optional[int] = Field(default=None, alias="thoughtsTokenCount")
    cached_content_token_count: Optional[int] = Field(default=None, alias="cachedContentTokenCount")


class ErrorObject(_Wire):
    code: Optional[int] = None
    message: Optional[str] = None
    status: Optional[str] = None


class GenerateContentResponse(_Wire):
    candidates: List[Candidate] = Field(default_factory=list)
    usage_metadata: Optional[UsageMetadata] = Field(default=None, alias="usageMetadata")
    error: Optional[ErrorObject] = None


__all__ = [
    "Part",
    "Content",
    "Candidate",
    "UsageMetadata",
    "ErrorObject",
    "GenerateContentResponse",
]
