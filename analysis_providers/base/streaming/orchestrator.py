"""End-to-end driver for one vendor request.

The orchestrator owns the HTTP connection for the duration of a call and
wires the pipeline::

    bytes -> SSEDecoder -> data: payload -> json -> adapter.handle_stream_event
          -> StreamChunk / UsageRecord -> (analysis) key scanner + decoder

States: ``connecting -> streaming -> finalizing -> completed | failed``.

Behaviour worth knowing:

* A blank API key fails with ``NO_API_KEY`` before any I/O.
* A non-success status reads the body and prefers the vendor's own message
  (``API_ERROR``) over a bare ``HTTP_ERROR``. Transport failures surface as
  ``HTTP_ERROR`` with ``status_code=None``.
* If a streamed response never contained a single ``data:`` payload, the raw
  body is parsed as a non-streaming response instead.
* Only the first usage record of a stream is forwarded; vendors that repeat a
  terminal marker cannot produce duplicate usage events.
* No retries, no timeouts. Callers bound the whole operation themselves.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, AsyncIterator, Dict, List, Mapping, Optional, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel

from ..capture import CaptureSink
from ..dto import ProviderRequestConfig, RequestPrompt
from ..errors import ProviderError, error_from_response, to_provider_error
from ..http import get_httpx_client
from ..log_support import LogContext
from ..logging import get_logger, log_event, normalized_log_event
from ..structured import decode_structured
from ..tokens import UsageRecord
from .key_scanner import IncrementalKeyScanner
from .sse import DONE_SENTINEL, SSEDecoder, sse_payload
from .streaming import AnalysisEventKind, AnalysisStreamEvent, StreamChunk, StreamItem
from .streaming_metrics import StreamMetrics, finalize_stream

if TYPE_CHECKING:
    from ..interfaces import ProviderAdapter

M = TypeVar("M", bound=BaseModel)

_logger = get_logger("analysis_providers.stream")

# Scanner key name -> progress event emitted per match.
PROGRESS_KEYS: Mapping[str, Tuple[str, AnalysisEventKind]] = {
    "insight": ('"title"', AnalysisEventKind.INSIGHT_FOUND),
    "quiz": ('"question"', AnalysisEventKind.QUIZ_QUESTION_FOUND),
}


class StreamState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    FAILED = "failed"


class StreamOrchestrator:
    """Drive one request through a :class:`ProviderAdapter`.

    An orchestrator instance (and its adapter) serves a single call; create a
    new one per stream.

    Parameters:
        adapter: Vendor adapter; must be fresh for stateful vendors.
        config: Request settings. ``stream`` is forced per call type.
        client: Optional ``httpx.AsyncClient``; defaults to the shared pool.
        capture: Optional record-mode sink observing raw payloads.
        name_hint: Label used for logs and capture file names.
    """

    def __init__(
        self,
        adapter: "ProviderAdapter",
        config: ProviderRequestConfig,
        *,
        client: Optional[httpx.AsyncClient] = None,
        capture: Optional[CaptureSink] = None,
        name_hint: str = "stream",
    ) -> None:
        self.adapter = adapter
        self.config = config
        self.capture = capture
        self.name_hint = name_hint
        self.state = StreamState.IDLE
        self.metrics = StreamMetrics()
        self._client = client
        self._ctx = LogContext(provider=adapter.provider_name, model=config.model, stream=name_hint)
        self._usage: Optional[UsageRecord] = None
        self._saw_payload = False

    # State ----------------------------------------------------------------
    def _set_state(self, state: StreamState, **fields: Any) -> None:
        self.state = state
        normalized_log_event(
            _logger,
            "stream.state",
            self._ctx,
            phase=state.value,
            level=logging.DEBUG,
            **fields,
        )

    def _fail(self, err: ProviderError) -> ProviderError:
        err.bind(self.adapter.provider_name, self.config.model)
        self._set_state(StreamState.FAILED, error_code=err.code.value)
        return err

    def _prepared_config(self, stream: bool) -> ProviderRequestConfig:
        key = (self.config.api_key or "").strip()
        if not key:
            raise self._fail(ProviderError.no_api_key(self.adapter.provider_name))
        return self.config.model_copy(update={"api_key": key, "stream": stream})

    def _http(self) -> httpx.AsyncClient:
        return self._client if self._client is not None else get_httpx_client("llm")

    # Non-streaming ----------------------------------------------------------
    async def request(self, prompt: RequestPrompt) -> Tuple[str, Optional[UsageRecord]]:
        """Issue a non-streaming request and return ``(text, usage)``."""
        config = self._prepared_config(stream=False)
        descriptor = self.adapter.build_request(prompt, config)
        self._set_state(StreamState.CONNECTING)
        try:
            response = await self._http().request(
                descriptor.method,
                descriptor.url,
                headers=descriptor.headers,
                params=descriptor.params or None,
                json=descriptor.body,
            )
            body = response.content
            if not response.is_success:
                raise error_from_response(response.status_code, body)
            if self.capture is not None:
                self.capture.record_response(self.name_hint, body)
            self._set_state(StreamState.FINALIZING)
            text, usage = self.adapter.parse_non_streaming(body)
        except ProviderError as err:
            raise self._fail(err)
        except httpx.HTTPError as exc:
            raise self._fail(to_provider_error(exc)) from exc
        self._set_state(StreamState.COMPLETED)
        return text, usage

    # Streaming ----------------------------------------------------------------
    def _admit(self, item: StreamItem) -> Optional[StreamItem]:
        """Apply per-stream bookkeeping; return ``None`` to drop the item."""
        if isinstance(item, UsageRecord):
            if self._usage is not None:
                log_event(
                    _logger,
                    "stream.usage.duplicate",
                    self._ctx,
                    level=logging.DEBUG,
                    kept=self._usage.to_dict(),
                    dropped=item.to_dict(),
                )
                return None
            self._usage = item
            self.metrics.usage = item
            return item
        if item.kind == "content":
            self.metrics.mark_content()
        else:
            self.metrics.thinking += 1
        return item

    def _handle_line(self, line: str) -> List[StreamItem]:
        payload = sse_payload(line)
        if payload is None:
            return []
        self._saw_payload = True
        if payload == DONE_SENTINEL:
            return []
        self.metrics.payloads += 1
        if self.capture is not None:
            self.capture.record_chunk(self.name_hint, payload)
        try:
            event = json.loads(payload)
        except ValueError:
            log_event(_logger, "stream.payload.undecodable", self._ctx, level=logging.DEBUG, size=len(payload))
            return []
        if not isinstance(event, dict):
            return []
        return self.adapter.handle_stream_event(event)

    async def _stream_items(self, prompt: RequestPrompt) -> AsyncIterator[StreamItem]:
        """Core generator; leaves the orchestrator in ``FINALIZING`` on success."""
        config = self._prepared_config(stream=True)
        descriptor = self.adapter.build_request(prompt, config)
        self._set_state(StreamState.CONNECTING)
        error: Optional[ProviderError] = None
        try:
            async with self._http().stream(
                descriptor.method,
                descriptor.url,
                headers=descriptor.headers,
                params=descriptor.params or None,
                json=descriptor.body,
            ) as response:
                if not response.is_success:
                    body = await response.aread()
                    raise error_from_response(response.status_code, body)
                self._set_state(StreamState.STREAMING, status=response.status_code)

                decoder = SSEDecoder()
                raw = bytearray()
                async for data in response.aiter_bytes():
                    if not self._saw_payload:
                        raw += data
                    for line in decoder.append(data):
                        for item in self._handle_line(line):
                            if (admitted := self._admit(item)) is not None:
                                yield admitted
                tail = decoder.finalize()
                if tail is not None:
                    for item in self._handle_line(tail):
                        if (admitted := self._admit(item)) is not None:
                            yield admitted
                if self._saw_payload:
                    for item in self.adapter.finish_stream():
                        if (admitted := self._admit(item)) is not None:
                            yield admitted

                self._set_state(StreamState.FINALIZING, fallback=not self._saw_payload)
                if not self._saw_payload:
                    body = bytes(raw)
                    if self.capture is not None:
                        self.capture.record_response(self.name_hint, body)
                    text, usage = self.adapter.parse_non_streaming(body)
                    if usage is not None and (admitted := self._admit(usage)) is not None:
                        yield admitted
                    chunk = StreamChunk.content(text)
                    self._admit(chunk)
                    yield chunk
        except ProviderError as err:
            error = self._fail(err)
            raise error
        except httpx.HTTPError as exc:
            error = self._fail(to_provider_error(exc))
            raise error from exc
        finally:
            if self.capture is not None:
                self.capture.flush(self.name_hint)
            if self.state is StreamState.FINALIZING or error is not None:
                finalize_stream(
                    _logger,
                    self._ctx,
                    self.metrics,
                    error_code=error.code.value if error is not None else None,
                    error=error.message if error is not None else None,
                )
            elif self.state is not StreamState.FAILED:
                self._set_state(StreamState.FAILED, reason="aborted")

    async def stream_chunks(self, prompt: RequestPrompt) -> AsyncIterator[StreamItem]:
        """Yield content/thinking chunks and at most one usage record."""
        items = self._stream_items(prompt)
        try:
            async for item in items:
                yield item
        finally:
            await items.aclose()
        self._set_state(StreamState.COMPLETED)

    async def analysis_events(
        self,
        prompt: RequestPrompt,
        payload_type: Type[M],
        *,
        progress_keys: Mapping[str, Tuple[str, AnalysisEventKind]] = PROGRESS_KEYS,
    ) -> AsyncIterator[AnalysisStreamEvent]:
        """Yield analysis events ending with exactly one ``completed`` event.

        Content is accumulated and scanned for progress keys; the accumulated
        text is decoded into ``payload_type`` once the stream ends.
        """
        scanner = IncrementalKeyScanner({name: literal for name, (literal, _) in progress_keys.items()})
        kinds: Dict[str, AnalysisEventKind] = {name: kind for name, (_, kind) in progress_keys.items()}
        parts: List[str] = []
        items = self._stream_items(prompt)
        try:
            async for item in items:
                if isinstance(item, UsageRecord):
                    yield AnalysisStreamEvent.usage_event(item)
                elif item.kind == "thinking":
                    yield AnalysisStreamEvent.thinking(item.text)
                else:
                    parts.append(item.text)
                    for name, count in scanner.update(item.text).items():
                        for _ in range(count):
                            yield AnalysisStreamEvent(kinds[name])
        finally:
            await items.aclose()

        text = "".join(parts)
        if self.capture is not None and text:
            self.capture.record_response(f"{self.name_hint}_text", text.encode("utf-8"))
        try:
            payload = decode_structured(text, payload_type)
        except ProviderError as err:
            raise self._fail(err)
        self._set_state(StreamState.COMPLETED, **{f"{k}_count": v for k, v in scanner.totals.items()})
        yield AnalysisStreamEvent.completed(payload)


__all__ = ["StreamOrchestrator", "StreamState", "PROGRESS_KEYS"]
