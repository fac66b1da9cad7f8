"""Incremental JSON key counter for live progress reporting.

The scanner watches streamed JSON text and counts how many times each tracked
object key has appeared (for example ``"title"`` once per insight). It keeps
enough state between chunks to recognise a key split across arbitrary chunk
boundaries and tracks whether the current position is inside a JSON string so
that key-like text in string values is not counted.

Counts are an estimate for progress UIs only. Final numbers always come from
decoding the completed payload.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional

DEFAULT_TRACKED_KEYS: Mapping[str, str] = {
    "insight": '"title"',
    "quiz": '"question"',
}

_QUOTE = 0x22
_BACKSLASH = 0x5C
_COLON = 0x3A
_SPACE = 0x20


@dataclass
class _KeyMatcher:
    literal: bytes
    index: int = 0
    awaiting_colon: bool = False
    total: int = 0

    def reset(self) -> None:
        self.index = 0
        self.awaiting_colon = False


class IncrementalKeyScanner:
    """Count tracked JSON keys across a stream of text chunks.

    A key counts only when its full quoted literal opens and closes a string
    outside any other string and the next byte that is not whitespace or a
    control byte is a colon.
    """

    def __init__(self, keys: Optional[Mapping[str, str]] = None) -> None:
        tracked = keys if keys is not None else DEFAULT_TRACKED_KEYS
        for name, literal in tracked.items():
            if len(literal) < 2 or not (literal.startswith('"') and literal.endswith('"')):
                raise ValueError(f"tracked key {name!r} must be a quoted literal, got {literal!r}")
        self._matchers: Dict[str, _KeyMatcher] = {
            name: _KeyMatcher(literal.encode("utf-8")) for name, literal in tracked.items()
        }
        self._in_string = False
        self._escaped = False

    @property
    def totals(self) -> Dict[str, int]:
        """Cumulative counts since construction."""
        return {name: m.total for name, m in self._matchers.items()}

    def update(self, text: str) -> Dict[str, int]:
        """Scan ``text`` and return the per-key counts matched in this chunk."""
        found = dict.fromkeys(self._matchers, 0)
        for byte in text.encode("utf-8"):
            was_in_string = self._in_string
            was_escaped = self._escaped
            self._advance_string_state(byte)
            for name, matcher in self._matchers.items():
                if self._step(matcher, byte, was_in_string, was_escaped):
                    matcher.total += 1
                    found[name] += 1
        return found

    def _advance_string_state(self, byte: int) -> None:
        if self._in_string:
            if self._escaped:
                self._escaped = False
            elif byte == _BACKSLASH:
                self._escaped = True
            elif byte == _QUOTE:
                self._in_string = False
        elif byte == _QUOTE:
            self._in_string = True

    @staticmethod
    def _step(matcher: _KeyMatcher, byte: int, was_in_string: bool, was_escaped: bool) -> bool:
        """Advance one matcher; return True when the key is confirmed."""
        if matcher.awaiting_colon:
            if byte <= _SPACE:
                return False
            confirmed = byte == _COLON and not was_in_string
            matcher.reset()
            if confirmed:
                return True
        literal = matcher.literal
        if matcher.index == 0:
            # Only a quote that opens a string can begin a key.
            if byte == _QUOTE and not was_in_string:
                matcher.index = 1
            return False
        if matcher.index == len(literal) - 1:
            if byte == _QUOTE and was_in_string and not was_escaped:
                matcher.index = 0
                matcher.awaiting_colon = True
            else:
                matcher.reset()
            return False
        if byte == literal[matcher.index] and not was_escaped:
            matcher.index += 1
        else:
            matcher.reset()
        return False


__all__ = ["IncrementalKeyScanner", "DEFAULT_TRACKED_KEYS"]
