"""CLI action handlers.

Each handler runs one async operation on a fresh :class:`LLMService` and
returns a process exit code. Provider failures print the error's friendly
message to stderr and return ``1``; unexpected exceptions propagate.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, TextIO

from ...base.capture import FileCaptureSink
from ...base.errors import ProviderError
from ...base.factory import UnknownProviderError
from ...base.http import aclose_all_clients
from ...base.logging import get_logger, log_event
from ...base.reasoning import ReasoningLevel
from ...base.streaming import AnalysisEventKind, StreamChunk
from ...base.tokens import UsageRecord
from ..llm_service import LLMService
from ..prompts import DensityLevel

_logger = get_logger("analysis_providers.cli")


def build_service(args: argparse.Namespace) -> LLMService:
    """Create the service described by the common CLI flags."""
    options: Dict[str, Any] = {"model": args.model}
    if args.reasoning:
        options["reasoning"] = ReasoningLevel(args.reasoning)
        options["chat_reasoning"] = ReasoningLevel(args.reasoning)
    if args.temperature is not None:
        options["temperature"] = args.temperature
    if args.record:
        options["capture"] = FileCaptureSink(args.record)
    return LLMService(args.provider, **options)


def _usage_line(usage: Optional[UsageRecord]) -> str:
    if usage is None:
        return "usage: n/a"
    return "usage: " + " ".join(f"{k}={v}" for k, v in usage.to_dict().items() if v is not None)


async def _run_text(service: LLMService, args: argparse.Namespace, out: TextIO, err: TextIO) -> None:
    text, usage = await service.request_text(args.prompt)
    if args.json:
        out.write(json.dumps({"text": text, "usage": usage.to_dict() if usage else None}) + "\n")
        return
    out.write(text + "\n")
    err.write(_usage_line(usage) + "\n")


async def _run_stream(service: LLMService, args: argparse.Namespace, out: TextIO, err: TextIO) -> None:
    usage: Optional[UsageRecord] = None
    async with service.stream_text(args.prompt) as stream:
        async for item in stream:
            if isinstance(item, UsageRecord):
                usage = item
            elif isinstance(item, StreamChunk) and item.kind == "thinking":
                if args.show_thinking:
                    err.write(item.text)
                    err.flush()
            else:
                out.write(item.text)
                out.flush()
    out.write("\n")
    err.write(_usage_line(usage) + "\n")


async def _run_analyze(service: LLMService, args: argparse.Namespace, out: TextIO, err: TextIO) -> None:
    content = Path(args.file).read_text(encoding="utf-8")
    stream = service.analyze_chapter_streaming(
        content,
        args.summary,
        book_title=args.title,
        author=args.author,
        insight_density=DensityLevel(args.density),
        image_density=DensityLevel(args.images) if args.images else None,
    )
    insights = questions = 0
    payload: Any = None
    usage: Optional[UsageRecord] = None
    async with stream:
        async for event in stream:
            if event.kind is AnalysisEventKind.INSIGHT_FOUND:
                insights += 1
                err.write(f"insights: {insights}\n")
            elif event.kind is AnalysisEventKind.QUIZ_QUESTION_FOUND:
                questions += 1
                err.write(f"questions: {questions}\n")
            elif event.kind is AnalysisEventKind.USAGE:
                usage = event.usage
            elif event.kind is AnalysisEventKind.COMPLETED:
                payload = event.payload
    if payload is None:
        raise ProviderError.invalid_response()
    out.write(json.dumps(payload.model_dump(by_alias=True), indent=None if args.json else 2) + "\n")
    err.write(_usage_line(usage) + "\n")


HANDLERS: Dict[str, Callable[[LLMService, argparse.Namespace, TextIO, TextIO], Awaitable[None]]] = {
    "text": _run_text,
    "stream": _run_stream,
    "analyze": _run_analyze,
}


async def _execute(args: argparse.Namespace, out: TextIO, err: TextIO) -> None:
    try:
        await HANDLERS[args.cmd](build_service(args), args, out, err)
    finally:
        await aclose_all_clients()


def handle_command(
    args: argparse.Namespace,
    *,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
) -> int:
    """Run the subcommand in ``args.cmd``.

    Returns
    -------
    int
        ``0`` on success, ``1`` on a provider error or unknown provider.
    """
    out = out or sys.stdout
    err = err or sys.stderr
    try:
        asyncio.run(_execute(args, out, err))
    except ProviderError as exc:
        log_event(_logger, "cli.error", provider=exc.provider, model=exc.model, error_code=exc.code.value)
        err.write(exc.friendly_message + "\n")
        return 1
    except UnknownProviderError as exc:
        err.write(f"{exc}\n")
        return 1
    return 0


__all__ = ["build_service", "handle_command", "HANDLERS"]
