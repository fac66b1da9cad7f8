"""Analysis provider CLI (package entrypoint).

Wires argument parsing to the handlers in ``cli_actions``; performs no
provider logic directly.

Public API re-exports:
- ``main``: CLI entrypoint callable
"""

from __future__ import annotations

import sys
from typing import List, Optional

from ...base.logging import configure_logger
from .cli_actions import handle_command
from .cli_parser import build_parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entrypoint.

    Parameters
    ----------
    argv: Optional[list[str]]
        Argument vector; when ``None`` uses ``sys.argv[1:]``.

    Returns
    -------
    int
        Process exit code (0 success, 1 on provider errors).
    """
    args = build_parser().parse_args(list(sys.argv[1:] if argv is None else argv))
    if not args.log_file:
        return handle_command(args)
    configure_logger(file_path=args.log_file)
    try:
        return handle_command(args)
    finally:
        configure_logger(file_path=None)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
