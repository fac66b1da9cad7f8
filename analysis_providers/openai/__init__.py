"""OpenAI (Responses API) adapter package."""

from .client import OpenAIAdapter

__all__ = ["OpenAIAdapter"]
