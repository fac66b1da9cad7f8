"""Cost estimation for normalized token usage."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional

from .tokens import UsageRecord

CACHED_INPUT_MULTIPLIER = Decimal("0.1")
_MILLION = Decimal(1_000_000)


@dataclass(frozen=True)
class ModelPricing:
    """USD prices per one million tokens."""

    input_per_m: Decimal
    output_per_m: Decimal
    cached_input_multiplier: Decimal = CACHED_INPUT_MULTIPLIER


PRICING_CATALOG: Dict[str, ModelPricing] = {
    "gemini-3-pro-preview": ModelPricing(Decimal("2"), Decimal("12")),
    "gemini-3-flash-preview": ModelPricing(Decimal("0.5"), Decimal("3")),
    "gpt-5.2": ModelPricing(Decimal("1.75"), Decimal("14")),
    "claude-opus-4-5": ModelPricing(Decimal("5"), Decimal("25")),
    "claude-sonnet-4-5": ModelPricing(Decimal("3"), Decimal("15")),
    "claude-haiku-4-5": ModelPricing(Decimal("1"), Decimal("5")),
}


def pricing_for(model: str) -> Optional[ModelPricing]:
    return PRICING_CATALOG.get(model)


def estimate_cost(model: str, usage: UsageRecord) -> Optional[Decimal]:
    """Return the USD cost of ``usage`` on ``model`` or ``None`` if unpriced.

    Cached input tokens are billed at the discounted rate; reasoning tokens
    are billed as output.
    """
    pricing = pricing_for(model)
    if pricing is None:
        return None
    cached = min(usage.cached or 0, usage.input)
    fresh_input = usage.input - cached
    output = usage.visible_output + (usage.reasoning or 0)
    return (
        Decimal(fresh_input) / _MILLION * pricing.input_per_m
        + Decimal(cached) / _MILLION * pricing.input_per_m * pricing.cached_input_multiplier
        + Decimal(output) / _MILLION * pricing.output_per_m
    )


__all__ = ["ModelPricing", "PRICING_CATALOG", "CACHED_INPUT_MULTIPLIER", "pricing_for", "estimate_cost"]
