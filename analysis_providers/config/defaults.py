"""analysis_providers.config.defaults
===================================

Small, stable default values used across the package and the CLI. They can
be overridden via environment variables or the external config file and
provide sensible fallbacks for local development and tests.

Only plain constants live here; this module imports nothing from the rest of
the package to stay free of cycles.
"""

from __future__ import annotations

# ---- CLI Defaults ----
# Provider used by the CLI when none is specified.
PROVIDER_CLI_DEFAULT_PROVIDER = "gemini"
# Directory for --record captures when no path is given.
PROVIDER_CLI_DEFAULT_CAPTURE_DIR = "~/.analysis_providers/captures"


# ---- OpenAI (Responses API) ----
OPENAI_DEFAULT_MODEL = "gpt-5.2"
OPENAI_DEFAULT_BASE_URL = "https://api.openai.com/v1"
OPENAI_CHEAP_MODEL = "gpt-5.2"

# ---- Gemini ----
GEMINI_DEFAULT_MODEL = "gemini-3-pro-preview"
GEMINI_DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
GEMINI_CHEAP_MODEL = "gemini-3-flash-preview"

# ---- Anthropic ----
ANTHROPIC_DEFAULT_MODEL = "claude-sonnet-4-5"
ANTHROPIC_DEFAULT_BASE_URL = "https://api.anthropic.com/v1"
ANTHROPIC_CHEAP_MODEL = "claude-haiku-4-5"
ANTHROPIC_API_VERSION = "2023-06-01"
ANTHROPIC_STRUCTURED_OUTPUT_BETA = "structured-outputs-2025-11-13"


# ---- Request defaults ----
DEFAULT_TEMPERATURE = 1.0
# Temperature for short deterministic helper calls (summary, classification).
HELPER_TEMPERATURE = 0.3


__all__ = [
    "PROVIDER_CLI_DEFAULT_PROVIDER",
    "PROVIDER_CLI_DEFAULT_CAPTURE_DIR",
    "OPENAI_DEFAULT_MODEL",
    "OPENAI_DEFAULT_BASE_URL",
    "OPENAI_CHEAP_MODEL",
    "GEMINI_DEFAULT_MODEL",
    "GEMINI_DEFAULT_BASE_URL",
    "GEMINI_CHEAP_MODEL",
    "ANTHROPIC_DEFAULT_MODEL",
    "ANTHROPIC_DEFAULT_BASE_URL",
    "ANTHROPIC_CHEAP_MODEL",
    "ANTHROPIC_API_VERSION",
    "ANTHROPIC_STRUCTURED_OUTPUT_BETA",
    "DEFAULT_TEMPERATURE",
    "HELPER_TEMPERATURE",
]
