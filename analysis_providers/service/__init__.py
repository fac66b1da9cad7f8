"""Service layer: the provider-bound ``LLMService`` facade, prompts and the CLI."""

from .llm_service import CHEAP_MODELS, LLMService, UsageObserver, collect_completed
from .prompts import DensityLevel

__all__ = ["LLMService", "UsageObserver", "CHEAP_MODELS", "collect_completed", "DensityLevel"]
