"""Shared fixtures for the analysis provider test suite.

- Every test runs with provider env vars, the config file and ``.env``
  loading isolated so developer machines cannot leak real keys in.
- ``sse_body`` renders vendor events as an SSE byte body.
- ``mock_client`` builds an ``httpx.AsyncClient`` over ``httpx.MockTransport``
  that records each request it serves.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Iterable, Iterator, List, Union

import httpx
import pytest

from analysis_providers.config import CONFIG_FILE_ENV, reset_config_cache

_PROVIDER_ENV = (
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_BASE_URL",
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_MODEL",
    "ANTHROPIC_BASE_URL",
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "GEMINI_MODEL",
    "GEMINI_BASE_URL",
)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    for name in _PROVIDER_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv(CONFIG_FILE_ENV, raising=False)
    monkeypatch.setenv("DOTENV_FILE", str(tmp_path / "absent.env"))
    reset_config_cache()
    yield
    reset_config_cache()


def _render(events: Iterable[Union[dict, str]], done: bool, newline: str) -> bytes:
    lines: List[str] = []
    for ev in events:
        payload = ev if isinstance(ev, str) else json.dumps(ev)
        lines.append(f"data: {payload}{newline}{newline}")
    if done:
        lines.append(f"data: [DONE]{newline}{newline}")
    return "".join(lines).encode("utf-8")


@pytest.fixture()
def sse_body() -> Callable[..., bytes]:
    """Return ``render(events, done=False, newline="\\n") -> bytes``."""

    def render(events: Iterable[Union[dict, str]], done: bool = False, newline: str = "\n") -> bytes:
        return _render(events, done, newline)

    return render


class RecordingHandler:
    """MockTransport handler that serves canned responses and records requests."""

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response]) -> None:
        self._responder = responder
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)

    @property
    def last_json(self) -> Any:
        return json.loads(self.requests[-1].content)


@pytest.fixture()
def mock_client() -> Callable[..., Any]:
    """Return ``make(responder) -> (client, handler)``.

    ``responder`` may be a callable taking the request or a ready
    ``httpx.Response`` served for every request.
    """

    def make(responder: Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]):
        fn = responder if callable(responder) else (lambda _req: responder)
        handler = RecordingHandler(fn)
        return httpx.AsyncClient(transport=httpx.MockTransport(handler)), handler

    return make


@pytest.fixture()
def log_records(monkeypatch: pytest.MonkeyPatch) -> Iterator[List[logging.LogRecord]]:
    """Capture records from the ``analysis_providers`` logger tree at DEBUG."""
    monkeypatch.setenv("ANALYSIS_PROVIDERS_LOG_LEVEL", "DEBUG")
    records: List[logging.LogRecord] = []
    handler = logging.Handler()
    handler.emit = lambda record: records.append(record)  # type: ignore[method-assign]
    base = logging.getLogger("analysis_providers")
    previous = base.level
    base.addHandler(handler)
    base.setLevel(logging.DEBUG)
    try:
        yield records
    finally:
        base.removeHandler(handler)
        base.setLevel(previous)


def events_named(records: List[logging.LogRecord], name: str) -> List[dict]:
    """Decode JSON log lines and keep those whose ``event`` equals ``name``."""
    out = []
    for r in records:
        try:
            data = json.loads(r.getMessage())
        except ValueError:
            continue
        if isinstance(data, dict) and data.get("event") == name:
            out.append(data)
    return out


@pytest.fixture()
def find_events() -> Callable[[List[logging.LogRecord], str], List[dict]]:
    return events_named
