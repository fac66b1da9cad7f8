"""CLI parser construction for analysis-cli.

This module wires subparsers but contains no execution logic. Subcommand
handlers live in ``cli_actions``.
"""

from __future__ import annotations

import argparse

from ...base.reasoning import ReasoningLevel
from ...config.defaults import PROVIDER_CLI_DEFAULT_CAPTURE_DIR, PROVIDER_CLI_DEFAULT_PROVIDER
from ..prompts import DensityLevel

COMMANDS = ("text", "stream", "analyze")


def add_common_flags(parser: argparse.ArgumentParser) -> None:
    """Attach provider selection, reasoning, record-mode and log-file flags.

    ``--record`` takes an optional directory; without one captures go to
    ``PROVIDER_CLI_DEFAULT_CAPTURE_DIR``.
    """
    parser.add_argument("--provider", default=PROVIDER_CLI_DEFAULT_PROVIDER)
    parser.add_argument("--model", default=None)
    parser.add_argument(
        "--reasoning",
        choices=[level.value for level in ReasoningLevel],
        default=None,
    )
    parser.add_argument("--temperature", type=float, default=None)
    parser.add_argument(
        "--record",
        nargs="?",
        const=PROVIDER_CLI_DEFAULT_CAPTURE_DIR,
        default=None,
        metavar="DIR",
        help="Write raw vendor payloads to DIR",
    )
    parser.add_argument("--json", action="store_true", help="Print machine-readable output")
    parser.add_argument("--log-file", default=None, metavar="PATH", help="Also write JSON log lines to PATH")


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level parser with ``text``, ``stream`` and ``analyze``.

    No I/O happens here.
    """
    p = argparse.ArgumentParser(prog="analysis-cli", description="Chapter analysis provider CLI")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_text = sub.add_parser("text", help="Send one prompt and print the response")
    p_text.add_argument("--prompt", required=True)
    add_common_flags(p_text)

    p_stream = sub.add_parser("stream", help="Stream a response to stdout")
    p_stream.add_argument("--prompt", required=True)
    p_stream.add_argument("--show-thinking", action="store_true", help="Echo thinking text to stderr")
    add_common_flags(p_stream)

    p_analyze = sub.add_parser("analyze", help="Stream a chapter analysis and print the result")
    p_analyze.add_argument("--file", required=True, help="Chapter text with numbered blocks")
    p_analyze.add_argument("--summary", default=None, help="Rolling summary of previous chapters")
    p_analyze.add_argument("--title", default=None)
    p_analyze.add_argument("--author", default=None)
    p_analyze.add_argument(
        "--density",
        choices=[d.value for d in DensityLevel],
        default=DensityLevel.MEDIUM.value,
    )
    p_analyze.add_argument(
        "--images",
        choices=[d.value for d in DensityLevel],
        default=None,
        help="Request image suggestions at this density",
    )
    add_common_flags(p_analyze)

    return p


__all__ = ["COMMANDS", "build_parser", "add_common_flags"]
