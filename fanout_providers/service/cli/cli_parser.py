"""CLI parser construction for fanout-cli.

Subparsers only; the handlers live in ``cli_actions``.
"""

from __future__ import annotations

import argparse

from ...config.defaults import FANOUT_CLI_DEFAULT_PROVIDERS


def _str2bool(v: str | None) -> bool:
    """Permissive truthy/falsey parsing; ``None`` (bare flag) means ``True``."""
    if v is None:
        return True
    val = v.strip().lower()
    if val in {"1", "t", "true", "y", "yes", "on"}:
        return True
    return False if val in {"0", "f", "false", "n", "no", "off"} else bool(val)


def add_stream_flags(parser: argparse.ArgumentParser) -> None:
    """Attach ``--stream``/``--no-stream``; streaming is on by default."""
    grp = parser.add_mutually_exclusive_group()
    grp.add_argument("--stream", nargs="?", const=True, type=_str2bool, default=True)
    grp.add_argument("--no-stream", dest="stream", action="store_false")


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level parser with ``send``, ``providers`` and ``validate``."""
    p = argparse.ArgumentParser(prog="fanout-cli", description="Send one prompt to several providers")
    p.add_argument("--log-level", default=None, help="Override FANOUT_LOG_LEVEL for this run")
    sub = p.add_subparsers(dest="cmd")

    # send
    p_send = sub.add_parser("send", help="Fan a prompt out to providers and print each result")
    p_send.add_argument("--providers", nargs="+", default=list(FANOUT_CLI_DEFAULT_PROVIDERS))
    p_send.add_argument("--prompt", required=True)
    p_send.add_argument("--model", default=None, help="Preferred model id (used where a provider offers it)")
    p_send.add_argument("--max-tokens", type=int, default=None)
    p_send.add_argument("--temperature", type=float, default=None)
    p_send.add_argument("--attach", nargs="*", default=[], help="Files to attach")
    p_send.add_argument("--db", default=None, help="Persist prompt and results to this SQLite file")
    p_send.add_argument("--live", action="store_true", help="Print chunks as they arrive")
    add_stream_flags(p_send)
    p_send.add_argument("--json", action="store_true")

    # providers
    p_prov = sub.add_parser("providers", help="List built-in providers and credential availability")
    p_prov.add_argument("--json", action="store_true")

    # validate
    p_val = sub.add_parser("validate", help="Check an API key against a provider")
    p_val.add_argument("--provider", required=True)
    p_val.add_argument("--key", required=True)

    return p
