"""Structured logging context carried through a single provider request.

:class:`LogContext` holds the provider name, model, an optional stream
identifier (``name_hint`` such as ``chapter_analysis_stream``) and arbitrary
extra metadata. ``to_dict`` flattens ``extra`` and prunes ``None`` values.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Optional


@dataclass
class LogContext:
    """Structured context for provider logging events."""

    provider: Optional[str] = None
    model: Optional[str] = None
    stream: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        extra = data.pop("extra", {}) or {}
        data.update({k: v for k, v in extra.items() if v is not None})
        return {k: v for k, v in data.items() if v is not None}

    def child(self, **extra: Any) -> "LogContext":
        """Return a copy with ``extra`` merged over the current extras."""
        merged = dict(self.extra)
        merged.update(extra)
        return LogContext(provider=self.provider, model=self.model, stream=self.stream, extra=merged)


__all__ = ["LogContext"]
