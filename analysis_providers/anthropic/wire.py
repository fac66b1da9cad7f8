"""Pydantic views of the Anthropic Messages wire format."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class MessagesUsage(BaseModel):
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
    cache_creation_input_tokens: Optional[int] = None
    cache_read_input_tokens: Optional[int] = None


class ContentBlock(BaseModel):
    type: str
    text: Optional[str] = None
    thinking: Optional[str] = None


class ErrorObject(BaseModel):
    type: Optional[str] = None
    message: Optional[str] = None


class MessagesBody(BaseModel):
    content: List[ContentBlock] = Field(default_factory=list)
    stop_reason: Optional[str] = None
    usage: Optional[MessagesUsage] = None
    error: Optional[ErrorObject] = None


class Delta(BaseModel):
    type: Optional[str] = None
    text: Optional[str] = None
    thinking: Optional[str] = None
    stop_reason: Optional[str] = None


class StreamEvent(BaseModel):
    """One ``data:`` payload of a Messages stream."""

    type: str = ""
    message: Optional[MessagesBody] = None
    delta: Optional[Delta] = None
    usage: Optional[MessagesUsage] = None
    error: Optional[ErrorObject] = None


__all__ = [
    "MessagesUsage",
    "ContentBlock",
    "ErrorObject",
    "MessagesBody",
    "Delta",
    "StreamEvent",
]
