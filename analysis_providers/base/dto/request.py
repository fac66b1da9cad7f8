"""
Pydantic DTOs describing one outbound generation request.

Purpose
-------
Carry the prompt, structured-output schema and per-request settings from the
service layer into a provider adapter. The DTOs are vendor agnostic; each
adapter maps them onto its own wire format.

Fallback semantics: none. Validation either succeeds or raises
``pydantic.ValidationError``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..reasoning import ReasoningLevel


class RequestPrompt(BaseModel):
    """Prompt text, optionally split for vendor prompt caching.

    When ``cache_prefix``/``cache_suffix`` are set, ``text`` always equals
    their concatenation. Vendors without explicit cache control just send
    ``text``.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    cache_prefix: Optional[str] = None
    cache_suffix: Optional[str] = None

    @model_validator(mode="after")
    def _validate_split(self) -> "RequestPrompt":
        if self.cache_prefix is None and self.cache_suffix is None:
            return self
        combined = (self.cache_prefix or "") + (self.cache_suffix or "")
        if combined != self.text:
            raise ValueError("text must equal cache_prefix + cache_suffix")
        return self

    @classmethod
    def plain(cls, text: str) -> "RequestPrompt":
        return cls(text=text)

    @classmethod
    def split(cls, prefix: str, suffix: str) -> "RequestPrompt":
        return cls(text=prefix + suffix, cache_prefix=prefix, cache_suffix=suffix)

    @property
    def is_split(self) -> bool:
        return self.cache_prefix is not None


class StructuredSchema(BaseModel):
    """A named JSON Schema for schema-constrained output."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1)
    json_schema: Dict[str, Any] = Field(..., alias="schema")


class ProviderRequestConfig(BaseModel):
    """Per-request settings shared by every vendor.

    Attributes:
        model: Vendor model id (e.g. ``gpt-5.2``, ``gemini-3-flash-preview``).
        api_key: Credential; blank keys are rejected before any I/O.
        temperature: Sampling temperature; ignored by vendors while reasoning.
        reasoning: Requested reasoning effort.
        output_schema: Optional structured-output schema.
        stream: Request an SSE stream instead of a single response.
        base_url: Override for the vendor API root (tests, proxies).
    """

    model: str = Field(..., min_length=1)
    api_key: str = ""
    temperature: float = Field(default=1.0, ge=0.0, le=2.0)
    reasoning: ReasoningLevel = ReasoningLevel.MEDIUM
    output_schema: Optional[StructuredSchema] = None
    stream: bool = False
    base_url: Optional[str] = None


__all__ = ["RequestPrompt", "StructuredSchema", "ProviderRequestConfig"]
