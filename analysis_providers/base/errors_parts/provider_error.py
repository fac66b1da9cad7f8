"""
Structured provider error exception type.

A single exception class carries the normalized :class:`ErrorCode` plus the
details each kind needs (the provider for missing keys, the vendor message
for API errors, the HTTP status for bare HTTP failures).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .error_code import ErrorCode

_STATUS_MESSAGES = {
    401: "API key rejected. Check your key or provider.",
    403: "API key rejected. Check your key or provider.",
    402: "Billing issue or insufficient funds.",
    429: "Rate limit exceeded. Try again soon.",
}


@dataclass
class ProviderError(Exception):
    """Represents a structured provider failure.

    Attributes:
        code: Normalized :class:`ErrorCode` for the failure.
        message: Diagnostic message (the vendor's text for ``API_ERROR``).
        provider: Provider key where the error originated (e.g. ``"openai"``).
        model: Optional model id associated with the failure.
        status_code: HTTP status for ``HTTP_ERROR``; ``None`` for transport
            failures that never produced a response.
        raw: Optional original exception for diagnostics.
    """

    code: ErrorCode
    message: str
    provider: Optional[str] = None
    model: Optional[str] = None
    status_code: Optional[int] = None
    raw: Optional[BaseException] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.provider or '-'}:{self.model or '-'} {self.code.value}: {self.message}"

    # Constructors ---------------------------------------------------------
    @classmethod
    def no_api_key(cls, provider: str) -> "ProviderError":
        return cls(ErrorCode.NO_API_KEY, f"No API key configured for {provider}", provider=provider)

    @classmethod
    def api_error(cls, message: str, *, provider: str | None = None, model: str | None = None) -> "ProviderError":
        return cls(ErrorCode.API_ERROR, message, provider=provider, model=model)

    @classmethod
    def http_error(
        cls,
        status_code: int | None,
        *,
        provider: str | None = None,
        model: str | None = None,
        raw: BaseException | None = None,
    ) -> "ProviderError":
        text = f"HTTP error: {status_code}" if status_code is not None else f"HTTP transport failure: {raw}"
        return cls(ErrorCode.HTTP_ERROR, text, provider=provider, model=model, status_code=status_code, raw=raw)

    @classmethod
    def invalid_response(
        cls,
        detail: str = "Invalid response from the model.",
        *,
        provider: str | None = None,
        model: str | None = None,
        raw: BaseException | None = None,
    ) -> "ProviderError":
        return cls(ErrorCode.INVALID_RESPONSE, detail, provider=provider, model=model, raw=raw)

    def bind(self, provider: str, model: str | None) -> "ProviderError":
        """Fill in provider/model when the raising site did not know them."""
        if self.provider is None:
            self.provider = provider
        if self.model is None:
            self.model = model
        return self

    @property
    def friendly_message(self) -> str:
        """Short user-facing description of the failure."""
        if self.code is ErrorCode.NO_API_KEY:
            return f"No API key configured for {self.provider}"
        if self.code is ErrorCode.API_ERROR:
            return self.message
        if self.code is ErrorCode.HTTP_ERROR:
            if self.status_code is None:
                return "Network error. Check your connection."
            return _STATUS_MESSAGES.get(self.status_code, f"HTTP error: {self.status_code}")
        return "Invalid response from the model."


__all__ = ["ProviderError"]
