"""Server-sent event line decoding.

``SSEDecoder`` turns an arbitrary sequence of byte chunks into logical text
lines. ``\\n``, ``\\r`` and ``\\r\\n`` all terminate a line and a ``\\r\\n``
pair counts once, even when the two bytes arrive in separate chunks. The
resulting line sequence is therefore the same whether the body is fed one
byte at a time or in a single buffer.
"""
from __future__ import annotations

from typing import List, Optional

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"

_LF = 0x0A
_CR = 0x0D


class SSEDecoder:
    """Incremental byte-to-line splitter for SSE bodies."""

    def __init__(self) -> None:
        self._buffer = bytearray()
        # A CR ended the previous line; swallow an LF that follows it.
        self._pending_cr = False

    def append(self, data: bytes) -> List[str]:
        """Feed ``data`` and return every line completed by it."""
        lines: List[str] = []
        start = 0
        for idx, byte in enumerate(data):
            if self._pending_cr:
                self._pending_cr = False
                if byte == _LF:
                    start = idx + 1
                    continue
            if byte == _LF or byte == _CR:
                self._buffer += data[start:idx]
                lines.append(self._take())
                start = idx + 1
                self._pending_cr = byte == _CR
        self._buffer += data[start:]
        return lines

    def finalize(self) -> Optional[str]:
        """Flush a non-empty unterminated remainder as a last line."""
        self._pending_cr = False
        if not self._buffer:
            return None
        return self._take()

    def _take(self) -> str:
        line = self._buffer.decode("utf-8", errors="replace")
        self._buffer.clear()
        return line


def sse_payload(line: str) -> Optional[str]:
    """Return the payload of a ``data:`` line, or ``None`` for any other line.

    The line must begin with the prefix; trailing whitespace is ignored and a
    single space after the colon is dropped. The ``[DONE]`` sentinel is
    returned as-is; callers skip it.
    """
    trimmed = line.rstrip()
    if not trimmed.startswith(DATA_PREFIX):
        return None
    payload = trimmed[len(DATA_PREFIX):]
    if payload.startswith(" "):
        payload = payload[1:]
    return payload


__all__ = ["SSEDecoder", "sse_payload", "DATA_PREFIX", "DONE_SENTINEL"]
