"""Streaming package for the provider layer.

Exposes the SSE decoder, key scanner, stream primitives, metrics, the
orchestrator and the cancellable controller under a single namespace.
"""

from .key_scanner import DEFAULT_TRACKED_KEYS, IncrementalKeyScanner
from .orchestrator import PROGRESS_KEYS, StreamOrchestrator, StreamState
from .sse import DONE_SENTINEL, SSEDecoder, sse_payload
from .stream_controller import StreamController
from .streaming import AnalysisEventKind, AnalysisStreamEvent, StreamChunk, StreamItem
from .streaming_metrics import StreamMetrics, finalize_stream

__all__ = [
    "DEFAULT_TRACKED_KEYS",
    "IncrementalKeyScanner",
    "PROGRESS_KEYS",
    "StreamOrchestrator",
    "StreamState",
    "DONE_SENTINEL",
    "SSEDecoder",
    "sse_payload",
    "StreamController",
    "AnalysisEventKind",
    "AnalysisStreamEvent",
    "StreamChunk",
    "StreamItem",
    "StreamMetrics",
    "finalize_stream",
]
