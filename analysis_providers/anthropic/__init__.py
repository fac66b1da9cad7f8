"""Anthropic (Messages API) adapter package."""

from .client import AnthropicAdapter

__all__ = ["AnthropicAdapter"]
