"""Shared async HTTP client pool.

Purpose:
    Provide reusable ``httpx.AsyncClient`` instances so repeated requests to
    the same vendor reuse pooled connections instead of paying a TLS
    handshake per call.

Timeout strategy:
    Clients are created with ``timeout=None``. This layer performs no retries
    and enforces no deadline; callers wrap whole operations in their own
    ``asyncio.timeout``/``wait_for`` when they need one.

Lifecycle & cleanup:
    Clients are cached per event loop, then per purpose. An ``AsyncClient`` is
    bound to the loop that first used it, so a new loop (for example each
    ``asyncio.run`` call) gets its own instance. The loop is held weakly:
    once it is garbage collected its clients are forgotten too. Call
    :func:`aclose_all_clients` on shutdown or in test teardown.
"""

from __future__ import annotations

import asyncio
import threading
import weakref
from typing import Dict

import httpx

_CLIENTS: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, Dict[str, httpx.AsyncClient]]" = (
    weakref.WeakKeyDictionary()
)
_LOCK = threading.RLock()


def get_httpx_client(purpose: str = "llm") -> httpx.AsyncClient:
    """Return a pooled ``httpx.AsyncClient`` for ``purpose`` on the running loop.

    Must be called from within a coroutine. Vendor URLs are absolute, so no
    ``base_url`` is attached to the client.
    """
    loop = asyncio.get_running_loop()
    with _LOCK:
        per_loop = _CLIENTS.setdefault(loop, {})
        client = per_loop.get(purpose)
        if client is None or client.is_closed:
            client = httpx.AsyncClient(timeout=None)
            per_loop[purpose] = client
        return client


async def aclose_all_clients() -> None:
    """Close the pooled clients of the running loop and forget all others.

    Clients bound to a loop that is no longer running cannot be awaited and
    are simply dropped.
    """
    loop = asyncio.get_running_loop()
    with _LOCK:
        owned = list(_CLIENTS.get(loop, {}).values())
        _CLIENTS.clear()
    for c in owned:
        if not c.is_closed:
            await c.aclose()


__all__ = ["get_httpx_client", "aclose_all_clients"]
