"""Fan-out CLI (package entrypoint).

Wires argument parsing to the handlers in ``cli_actions``; it performs no
provider logic directly.
"""

from __future__ import annotations

import sys
from typing import Optional

from ...base.logging import configure_logger
from .cli_actions import handle_providers, handle_send, handle_validate, resolve_log_level
from .cli_parser import build_parser


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entrypoint; returns the process exit code."""
    p = build_parser()
    args = p.parse_args(list(sys.argv[1:] if argv is None else argv))
    level = resolve_log_level(args.log_level)
    if level is not None:
        configure_logger(level=level)
    if args.cmd == "send":
        return handle_send(args)
    if args.cmd == "providers":
        return handle_providers(args)
    if args.cmd == "validate":
        return handle_validate(args)
    p.print_help(sys.stderr)
    return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
