"""Record mode: capture raw vendor payloads for fixture generation.

A capture sink is an optional collaborator injected into
:class:`~analysis_providers.base.streaming.StreamOrchestrator` or
:class:`~analysis_providers.service.LLMService`. It only observes payloads;
parsing never depends on it.

Streamed ``data:`` payloads are buffered per capture name and written as one
JSON document per line when the stream ends. Complete response bodies are
written as-is.
"""
from __future__ import annotations

import time
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Protocol, Union, runtime_checkable

from .logging import get_logger, log_event

_logger = get_logger("analysis_providers.capture")


@runtime_checkable
class CaptureSink(Protocol):
    def record_chunk(self, name: str, payload: str) -> None:
        """Observe one streamed SSE payload."""
        ...

    def record_response(self, name: str, body: bytes) -> None:
        """Observe one complete response body (or the assembled stream text)."""
        ...

    def flush(self, name: str) -> None:
        """Persist buffered chunks for ``name``; called once per stream."""
        ...


class MemoryCaptureSink:
    """Keeps captured payloads in memory (tests, interactive debugging)."""

    def __init__(self) -> None:
        self.chunks: Dict[str, List[str]] = defaultdict(list)
        self.responses: Dict[str, List[bytes]] = defaultdict(list)
        self.flushed: List[str] = []

    def record_chunk(self, name: str, payload: str) -> None:
        self.chunks[name].append(payload)

    def record_response(self, name: str, body: bytes) -> None:
        self.responses[name].append(body)

    def flush(self, name: str) -> None:
        self.flushed.append(name)


class FileCaptureSink:
    """Writes captures into ``directory`` as ``<name>_<ts>.json``/``.jsonl``."""

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory).expanduser()
        self._pending: Dict[str, List[str]] = defaultdict(list)

    def _path(self, name: str, suffix: str) -> Path:
        """Return a fresh path; same-second captures get a ``_<n>`` suffix."""
        self.directory.mkdir(parents=True, exist_ok=True)
        stem = f"{name}_{int(time.time())}"
        path = self.directory / f"{stem}{suffix}"
        n = 1
        while path.exists():
            path = self.directory / f"{stem}_{n}{suffix}"
            n += 1
        return path

    def record_chunk(self, name: str, payload: str) -> None:
        self._pending[name].append(payload)

    def record_response(self, name: str, body: bytes) -> None:
        path = self._path(name, ".json")
        path.write_bytes(body)
        log_event(_logger, "capture.response", name=name, path=str(path), bytes=len(body))

    def flush(self, name: str) -> None:
        chunks = self._pending.pop(name, [])
        if not chunks:
            return
        path = self._path(name, ".jsonl")
        path.write_text("\n".join(chunks) + "\n", encoding="utf-8")
        log_event(_logger, "capture.stream", name=name, path=str(path), chunks=len(chunks))


__all__ = ["CaptureSink", "MemoryCaptureSink", "FileCaptureSink"]
