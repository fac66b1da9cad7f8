"""Cancellable async channel between a stream producer and its consumer.

The producer (an async generator from the orchestrator) runs in its own task
and feeds a bounded queue; the consumer iterates the controller. Calling
:meth:`StreamController.cancel` stops the producer, closes the underlying
HTTP stream and guarantees that no further item is delivered.

The task that first iterates the controller owns it: when that task finishes
or is cancelled while the stream is still open, the producer is cancelled
with reason ``"consumer done"``.
"""
from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Generic, Optional, Tuple, TypeVar

from ..logging import get_logger, log_event

T = TypeVar("T")

_logger = get_logger("analysis_providers.stream.controller")

_ITEM = "item"
_ERROR = "error"
_DONE = "done"
_CANCELLED = "cancelled"

DEFAULT_BUFFER = 64


class StreamController(Generic[T]):
    """Async iterator facade with cooperative cancellation.

    Responsibilities:
      * Iterate over the producer's items in order.
      * Re-raise the producer's exception (a ``ProviderError``) at the
        consumer once the items before it are delivered.
      * Expose ``cancel(reason)``; safe to call repeatedly or after completion.
      * Track a terminal item (one with a truthy ``is_terminal``).
    """

    def __init__(self, source: AsyncIterator[T], *, buffer: int = DEFAULT_BUFFER, name: str = "stream") -> None:
        self._source = source
        self._queue: "asyncio.Queue[Tuple[str, Any]]" = asyncio.Queue(maxsize=max(1, buffer))
        self._task: Optional["asyncio.Task[None]"] = None
        self._name = name
        self._cancelled = False
        self._cancel_reason: Optional[str] = None
        self._finished = False
        self._terminal: Optional[T] = None
        self._error: Optional[BaseException] = None

    async def _produce(self) -> None:
        try:
            async for item in self._source:
                await self._queue.put((_ITEM, item))
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # delivered to the consumer, not swallowed
            await self._queue.put((_ERROR, exc))
            return
        finally:
            aclose = getattr(self._source, "aclose", None)
            if aclose is not None:
                await aclose()
        await self._queue.put((_DONE, None))

    def _ensure_started(self) -> None:
        if self._task is None and not self._cancelled:
            self._task = asyncio.get_running_loop().create_task(self._produce())
            consumer = asyncio.current_task()
            if consumer is not None:
                # The producer must not outlive the task that consumes it.
                consumer.add_done_callback(self._on_consumer_done)

    def _on_consumer_done(self, _task: "asyncio.Task[Any]") -> None:
        self.cancel("consumer done")

    # Iteration -----------------------------------------------------------
    def __aiter__(self) -> "StreamController[T]":
        return self

    async def __anext__(self) -> T:
        if self._cancelled or self._finished:
            raise StopAsyncIteration
        self._ensure_started()
        try:
            kind, value = await self._queue.get()
        except asyncio.CancelledError:
            self.cancel("consumer cancelled")
            raise
        if self._cancelled or kind == _CANCELLED:
            raise StopAsyncIteration
        if kind == _DONE:
            self._finished = True
            raise StopAsyncIteration
        if kind == _ERROR:
            self._finished = True
            self._error = value
            raise value
        if getattr(value, "is_terminal", False):
            self._terminal = value
        return value

    async def collect(self) -> list:
        """Drain the stream into a list."""
        return [item async for item in self]

    # API -----------------------------------------------------------------
    def cancel(self, reason: Optional[str] = None) -> None:
        """Stop the producer; no item is delivered after this returns."""
        if self._cancelled or self._finished:
            return
        self._cancelled = True
        self._cancel_reason = reason
        if self._task is not None and not self._task.done():
            self._task.cancel()
        while not self._queue.empty():
            self._queue.get_nowait()
        # Wakes a consumer blocked in ``__anext__``.
        self._queue.put_nowait((_CANCELLED, reason))
        log_event(_logger, "stream.cancelled", stream=self._name, reason=reason)

    async def aclose(self) -> None:
        """Cancel (if still running) and wait for the producer to unwind."""
        self.cancel("closed")
        if self._task is not None:
            await asyncio.wait({self._task})
        elif self._cancelled:
            aclose = getattr(self._source, "aclose", None)
            if aclose is not None:
                await aclose()

    async def __aenter__(self) -> "StreamController[T]":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def cancel_reason(self) -> Optional[str]:
        return self._cancel_reason

    @property
    def finished(self) -> bool:
        """Whether the producer ran to completion (successfully or not)."""
        return self._finished

    @property
    def terminal_event(self) -> Optional[T]:
        return self._terminal

    @property
    def error(self) -> Optional[BaseException]:
        return self._error


__all__ = ["StreamController", "DEFAULT_BUFFER"]
