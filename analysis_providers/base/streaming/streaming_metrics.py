"""Streaming metrics and the end-of-stream log record.

Isolated within the streaming package to keep the orchestrator focused on
the byte/event pipeline.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from ..log_support import LogContext
from ..logging import normalized_log_event
from ..tokens import UsageRecord


@dataclass
class StreamMetrics:
    """Metrics collected for one streamed request.

    ``emitted`` counts visible content chunks; ``thinking`` counts thinking
    chunks. Durations are milliseconds relative to ``started``.
    """

    started: float = field(default_factory=time.monotonic)
    emitted: int = 0
    thinking: int = 0
    payloads: int = 0
    time_to_first_token_ms: Optional[float] = None
    total_duration_ms: Optional[float] = None
    usage: Optional[UsageRecord] = None

    def mark_content(self) -> None:
        if self.time_to_first_token_ms is None:
            self.time_to_first_token_ms = (time.monotonic() - self.started) * 1000.0
        self.emitted += 1

    def mark_done(self) -> None:
        self.total_duration_ms = (time.monotonic() - self.started) * 1000.0


def finalize_stream(
    logger: logging.Logger,
    ctx: LogContext,
    metrics: StreamMetrics,
    *,
    error_code: Optional[str] = None,
    error: Optional[str] = None,
) -> None:
    """Emit the single end-of-stream record (``stream.adapter.end``/``.error``)."""
    metrics.mark_done()
    normalized_log_event(
        logger,
        "stream.adapter.end" if error_code is None else "stream.adapter.error",
        ctx,
        phase="finalize",
        emitted=metrics.emitted > 0,
        tokens=metrics.usage,
        error_code=error_code,
        level=logging.INFO if error_code is None else logging.WARNING,
        emitted_count=metrics.emitted,
        thinking_count=metrics.thinking,
        payload_count=metrics.payloads,
        time_to_first_token_ms=metrics.time_to_first_token_ms,
        total_duration_ms=metrics.total_duration_ms,
        error=error,
    )


__all__ = ["StreamMetrics", "finalize_stream"]
