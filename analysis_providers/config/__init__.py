"""Unified configuration layer for the analysis providers.

Goals
-----
* Centralize defaults (models, base URLs).
* Merge sources in a predictable order (later wins):
    1. Built-in defaults
    2. Optional JSON config file pointed to by ``ANALYSIS_PROVIDERS_CONFIG_FILE``
    3. Environment variables (``OPENAI_MODEL``, ``GEMINI_API_KEY`` ...)
    4. In-code overrides passed to the helper
* Provide a single call site: ``get_provider_config(provider)``.

Environment Variable Conventions
--------------------------------
``<PROVIDER>_MODEL``, ``<PROVIDER>_API_KEY``, ``<PROVIDER>_BASE_URL``. API keys
also honour the aliases in :data:`analysis_providers.config.env.ENV_ALIASES`
(``GOOGLE_API_KEY`` for Gemini). A ``.env`` file in the working directory
(or at ``DOTENV_FILE``) is loaded once before env vars are read.

External Config File
--------------------
JSON object keyed by provider::

    {
      "openai": {"model": "gpt-5.2"},
      "gemini": {"model": "gemini-3-flash-preview", "api_key": "..."}
    }

Only JSON is read; there is no YAML fallback. A file that is not valid JSON
raises ``ValueError`` naming the path instead of silently yielding an empty
config, and a valid document that is not an object is treated as empty.

Public API
----------
* get_provider_config(provider: str, overrides: dict | None = None) -> dict
* get_model(provider: str) -> str | None
* reset_config_cache() -> None
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .defaults import (
    ANTHROPIC_DEFAULT_BASE_URL,
    ANTHROPIC_DEFAULT_MODEL,
    GEMINI_DEFAULT_BASE_URL,
    GEMINI_DEFAULT_MODEL,
    OPENAI_DEFAULT_BASE_URL,
    OPENAI_DEFAULT_MODEL,
)
from .env import is_placeholder, resolve_provider_key

CONFIG_FILE_ENV = "ANALYSIS_PROVIDERS_CONFIG_FILE"

DEFAULTS: Dict[str, Dict[str, Any]] = {
    "openai": {"model": OPENAI_DEFAULT_MODEL, "base_url": OPENAI_DEFAULT_BASE_URL},
    "anthropic": {"model": ANTHROPIC_DEFAULT_MODEL, "base_url": ANTHROPIC_DEFAULT_BASE_URL},
    "gemini": {"model": GEMINI_DEFAULT_MODEL, "base_url": GEMINI_DEFAULT_BASE_URL},
}

ENV_FIELD_MAP = {
    "model": "MODEL",
    "base_url": "BASE_URL",
}

_FILE_CACHE: Optional[Dict[str, Any]] = None
_DOTENV_LOADED = False


def _load_dotenv_once() -> None:
    """Lightweight .env loader.

    Parses ``KEY=VALUE`` lines, ignoring comments and blanks. Existing
    environment values win unless they look like placeholders.
    """
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    _DOTENV_LOADED = True
    path = os.getenv("DOTENV_FILE", ".env")
    if not os.path.isfile(path):
        return
    with open(path, "r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            k, v = line.split("=", 1)
            k = k.strip()
            if k.startswith("export "):
                k = k[len("export "):].strip()
            v = v.strip().strip('"').strip("'")
            if k and (k not in os.environ or is_placeholder(os.environ.get(k))):
                os.environ[k] = v


def _load_external_config() -> Dict[str, Any]:
    global _FILE_CACHE
    if _FILE_CACHE is not None:
        return _FILE_CACHE
    path = os.getenv(CONFIG_FILE_ENV)
    data: Any = {}
    if path and Path(path).is_file():
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except ValueError as exc:
            raise ValueError(f"{CONFIG_FILE_ENV} points to invalid JSON: {path}") from exc
    _FILE_CACHE = data if isinstance(data, dict) else {}
    return _FILE_CACHE


def _env_overrides(provider: str) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    prefix = provider.upper()
    for field, suffix in ENV_FIELD_MAP.items():
        val = os.getenv(f"{prefix}_{suffix}")
        if val:
            out[field] = val
    key, _ = resolve_provider_key(provider)
    if key and not is_placeholder(key):
        out["api_key"] = key
    return out


def get_provider_config(provider: str, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return merged configuration for ``provider``.

    Merge order (later wins): defaults -> config file -> env vars -> overrides.
    ``None`` values in ``overrides`` are ignored.
    """
    _load_dotenv_once()
    name = (provider or "").lower().strip()
    cfg: Dict[str, Any] = {}
    cfg |= DEFAULTS.get(name, {})

    file_cfg = _load_external_config().get(name)
    if isinstance(file_cfg, dict):
        cfg |= file_cfg

    cfg |= _env_overrides(name)

    if overrides:
        cfg |= {k: v for k, v in overrides.items() if v is not None}
    return cfg


def get_model(provider: str) -> Optional[str]:
    return get_provider_config(provider).get("model")


def reset_config_cache() -> None:
    """Forget the cached config file and .env state (tests)."""
    global _FILE_CACHE, _DOTENV_LOADED
    _FILE_CACHE = None
    _DOTENV_LOADED = False


__all__ = [
    "CONFIG_FILE_ENV",
    "DEFAULTS",
    "get_provider_config",
    "get_model",
    "reset_config_cache",
]
