"""
Error classification helpers.

Maps vendor error bodies and arbitrary exceptions onto :class:`ErrorCode`
values. A non-success HTTP response first tries to surface the vendor's own
message (``error.message`` or a top-level ``message``) before degrading to a
bare status code.
"""
from __future__ import annotations

import json
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from .error_code import ErrorCode
from .provider_error import ProviderError


def parse_error_message(body: bytes | str | None) -> Optional[str]:
    """Extract a vendor error message from a JSON error body.

    Accepts ``{"error": {"message": ...}}``, ``{"error": "..."}`` and
    ``{"message": ...}``. Returns ``None`` when the body is not JSON or holds
    no non-empty message.
    """
    if not body:
        return None
    try:
        data: Any = json.loads(body)
    except ValueError:
        return None
    if isinstance(data, list) and data:
        # Gemini occasionally wraps the error object in a one-item array.
        data = data[0]
    if not isinstance(data, dict):
        return None
    err = data.get("error")
    if isinstance(err, dict):
        msg = err.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg
    elif isinstance(err, str) and err.strip():
        return err
    msg = data.get("message")
    if isinstance(msg, str) and msg.strip():
        return msg
    return None


def error_from_response(
    status_code: int,
    body: bytes | None,
    *,
    provider: str | None = None,
    model: str | None = None,
) -> ProviderError:
    """Build the error for a non-success HTTP response."""
    if (message := parse_error_message(body)) is not None:
        err = ProviderError.api_error(message, provider=provider, model=model)
        err.status_code = status_code
        return err
    return ProviderError.http_error(status_code, provider=provider, model=model)


def classify_exception(exc: BaseException) -> ErrorCode:
    """Classify an exception into a normalized :class:`ErrorCode`.

    Precedence:
        1. ProviderError passthrough.
        2. httpx status/transport errors -> ``HTTP_ERROR``.
        3. JSON decode and pydantic validation errors -> ``INVALID_RESPONSE``.
        4. ``API_ERROR`` fallback.
    """
    if isinstance(exc, ProviderError):
        return exc.code
    if isinstance(exc, httpx.HTTPError):
        return ErrorCode.HTTP_ERROR
    if isinstance(exc, (ValidationError, ValueError)):
        return ErrorCode.INVALID_RESPONSE
    return ErrorCode.API_ERROR


def to_provider_error(exc: BaseException, *, provider: str | None = None, model: str | None = None) -> ProviderError:
    """Wrap ``exc`` in a :class:`ProviderError` (passthrough when it already is one)."""
    if isinstance(exc, ProviderError):
        return exc.bind(provider, model) if provider else exc
    code = classify_exception(exc)
    if code is ErrorCode.HTTP_ERROR:
        status = None
        if isinstance(exc, httpx.HTTPStatusError):
            status = exc.response.status_code
        return ProviderError.http_error(status, provider=provider, model=model, raw=exc)
    if code is ErrorCode.INVALID_RESPONSE:
        return ProviderError.invalid_response(str(exc), provider=provider, model=model, raw=exc)
    return ProviderError(code, str(exc), provider=provider, model=model, raw=exc)


__all__ = [
    "classify_exception",
    "error_from_response",
    "parse_error_message",
    "to_provider_error",
]
