"""
Provider adapter contract.

An adapter translates between the vendor-agnostic DTOs and one vendor's wire
format. It performs no I/O: :class:`~analysis_providers.base.streaming.StreamOrchestrator`
owns the connection and feeds the adapter bytes and decoded events.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple, runtime_checkable

from .dto import ProviderRequestConfig, RequestPrompt
from .streaming.streaming import StreamItem
from .tokens import UsageRecord


@dataclass(frozen=True)
class RequestDescriptor:
    """Everything needed to issue one HTTP request."""

    url: str
    headers: Dict[str, str]
    body: Dict[str, Any]
    method: str = "POST"
    params: Dict[str, str] = field(default_factory=dict)


@runtime_checkable
class ProviderAdapter(Protocol):
    """Fixed capability set every vendor adapter implements."""

    @property
    def provider_name(self) -> str:
        """Canonical provider identifier, e.g. ``"openai"``."""
        ...

    def build_request(self, prompt: RequestPrompt, config: ProviderRequestConfig) -> RequestDescriptor:
        """Encode the vendor endpoint, headers and body for one call."""
        ...

    def parse_non_streaming(self, body: bytes) -> Tuple[str, Optional[UsageRecord]]:
        """Extract assistant text and usage from a complete response body.

        Raises ``API_ERROR`` for vendor error objects and refusals and
        ``INVALID_RESPONSE`` for a missing shape or empty text.
        """
        ...

    def handle_stream_event(self, event: Mapping[str, Any]) -> List[StreamItem]:
        """Interpret one decoded SSE payload; raise ``API_ERROR`` on vendor errors."""
        ...

    def finish_stream(self) -> List[StreamItem]:
        """Called once after the last payload of a stream that carried payloads.

        Vendors whose terminal condition spans several events (a streamed
        refusal) raise here when the stream ended without closing it.
        """
        ...


__all__ = ["RequestDescriptor", "ProviderAdapter"]
