"""
Normalized provider error codes.

Every failure surfaced by the analysis client falls into one of four
categories. Values are lowercase snake_case and form a stable contract for
logging and for callers that branch on the failure kind.
"""
from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Enumerated failure categories."""

    NO_API_KEY = "no_api_key"
    API_ERROR = "api_error"
    HTTP_ERROR = "http_error"
    INVALID_RESPONSE = "invalid_response"


__all__ = ["ErrorCode"]
