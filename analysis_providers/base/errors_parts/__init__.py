"""Errors parts package.

Prefer importing from ``analysis_providers.base.errors`` for the stable surface.
"""

from .error_code import ErrorCode
from .provider_error import ProviderError
from .classification import (
    classify_exception,
    error_from_response,
    parse_error_message,
    to_provider_error,
)

__all__ = [
    "ErrorCode",
    "ProviderError",
    "classify_exception",
    "error_from_response",
    "parse_error_message",
    "to_provider_error",
]
