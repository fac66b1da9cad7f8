"""Pydantic views of the OpenAI Responses API wire format.

Only the fields the adapter reads are modelled; everything else is ignored so
that additive API changes never break decoding.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class InputTokensDetails(BaseModel):
    cached_tokens: Optional[int] = None


class OutputTokensDetails(BaseModel):
    reasoning_tokens: Optional[int] = None


class ResponsesUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0
    input_tokens_details: Optional[InputTokensDetails] = None
    output_tokens_details: Optional[OutputTokensDetails] = None


class OutputContent(BaseModel):
    type: str
    text: Optional[str] = None
    refusal: Optional[str] = None


class OutputItem(BaseModel):
    type: str
    content: List[OutputContent] = Field(default_factory=list)


class ErrorObject(BaseModel):
    message: Optional[str] = None
    code: Optional[str] = None


class ResponsesBody(BaseModel):
    output: List[OutputItem] = Field(default_factory=list)
    usage: Optional[ResponsesUsage] = None
    error: Optional[ErrorObject] = None


class StreamEvent(BaseModel):
    """One ``data:`` payload of a Responses stream.

    ``error`` events carry ``message`` at the top level in current API
    versions and under ``error.message`` in older ones.
    """

    type: str = ""
    delta: Optional[str] = None
    refusal: Optional[str] = None
    response: Optional[ResponsesBody] = None
    error: Optional[ErrorObject] = None
    message: Optional[str] = None


__all__ = [
    "InputTokensDetails",
    "OutputTokensDetails",
    "ResponsesUsage",
    "OutputContent",
    "OutputItem",
    "ErrorObject",
    "ResponsesBody",
    "StreamEvent",
]
