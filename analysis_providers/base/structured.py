"""Tolerant decoding of a structured JSON payload from model output.

Vendors asked for schema-constrained output occasionally wrap the JSON object
in commentary or a Markdown fence. :func:`decode_structured` first tries the
trimmed text as-is and otherwise scans for balanced top-level ``{...}``
spans, keeping the longest one that decodes (and validates, when a model type
is given).
"""
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Iterator, Optional, Tuple, Type, TypeVar, overload

from pydantic import BaseModel, ValidationError

from .errors import ProviderError
from .logging import get_logger, log_event

M = TypeVar("M", bound=BaseModel)

_logger = get_logger("analysis_providers.structured")


def iter_object_spans(text: str) -> Iterator[Tuple[int, int]]:
    """Yield ``(start, end)`` for every balanced top-level ``{...}`` span.

    Braces inside double-quoted strings are ignored and backslash escapes
    inside strings are honoured. An unterminated trailing span is not yielded.
    """
    depth = 0
    start = -1
    in_string = False
    escaped = False
    for idx, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            if depth == 0:
                start = idx
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                yield start, idx + 1


def _decode_with(text: str, convert: Callable[[Any], Any]) -> Any:
    trimmed = text.strip()
    try:
        return convert(json.loads(trimmed))
    except (ValueError, ValidationError):
        pass

    best: Optional[Any] = None
    best_len = -1
    for start, end in iter_object_spans(trimmed):
        if end - start <= best_len:
            continue
        try:
            candidate = convert(json.loads(trimmed[start:end]))
        except (ValueError, ValidationError):
            continue
        best, best_len = candidate, end - start
    if best_len < 0:
        raise ProviderError.invalid_response("No decodable JSON object in model output")
    log_event(
        _logger,
        "structured.decode.fallback",
        level=logging.DEBUG,
        text_length=len(trimmed),
        object_length=best_len,
    )
    return best


@overload
def decode_structured(text: str) -> Any: ...


@overload
def decode_structured(text: str, model_type: Type[M]) -> M: ...


def decode_structured(text: str, model_type: Optional[Type[M]] = None) -> Any:
    """Decode ``text`` into JSON, optionally validated as ``model_type``.

    A span that is valid JSON but fails validation is skipped like any other
    undecodable span.

    Raises:
        ProviderError: ``INVALID_RESPONSE`` when no candidate decodes.
    """
    if model_type is None:
        return _decode_with(text, lambda data: data)
    return _decode_with(text, model_type.model_validate)


__all__ = ["decode_structured", "iter_object_spans"]
