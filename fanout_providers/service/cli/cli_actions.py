"""CLI action handlers.

Purpose
-------
Subcommand handlers for the fan-out CLI. Each handler builds a
:class:`ProviderRegistry` for the providers it needs, runs the async work
with ``asyncio.run`` and closes the registry afterwards. No top-level side
effects; safe to import in tests.

Error semantics
---------------
- Unknown providers, unreadable attachments and validation errors print a
  JSON error to stderr and return ``2``.
- ``send`` returns ``1`` when any provider failed, ``0`` otherwise.
- ``validate`` returns ``1`` for a rejected key.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import mimetypes
import sys
from pathlib import Path
from typing import Dict, List, Optional

from ...base.errors import OrchestrationValidationError, UnknownProviderError, describe_exception
from ...base.logging import get_logger, log_event
from ...base.models import (
    Attachment,
    CompletionRequest,
    CompletionResponse,
    GenerationOptions,
    StreamingChunk,
)
from ...base.registry import ProviderRegistry, supported
from ...orchestration import CompletionOrchestrator
from ...persistence.sqlite import SqliteCompletionStore

_logger = get_logger("cli")


def _fail(exc: BaseException) -> int:
    print(json.dumps({"error": describe_exception(exc)}), file=sys.stderr)
    return 2


def read_attachment(path: str) -> Attachment:
    """Load a file as an attachment; media type is guessed from the name."""
    p = Path(path).expanduser()
    media_type, _ = mimetypes.guess_type(p.name)
    return Attachment(data=p.read_bytes(), media_type=media_type or "application/octet-stream", name=p.name)


def build_request(args: argparse.Namespace) -> CompletionRequest:
    options = GenerationOptions(
        max_tokens=args.max_tokens,
        temperature=args.temperature,
        preferred_model_id=args.model,
        streaming_enabled=bool(args.stream),
    )
    attachments = tuple(read_attachment(path) for path in args.attach or ())
    return CompletionRequest(prompt=args.prompt, attachments=attachments, options=options)


async def _send(
    orchestrator: CompletionOrchestrator,
    registry: ProviderRegistry,
    provider_ids: List[str],
    request: CompletionRequest,
) -> Dict[str, CompletionResponse]:
    try:
        return await orchestrator.send_to_multiple_services(provider_ids, request)
    finally:
        await registry.aclose()


def format_result(provider_id: str, resp: CompletionResponse) -> str:
    """Render one provider result for terminal output."""
    if not resp.ok:
        return f"[{provider_id}] error ({resp.model_id}, {resp.execution_time_ms} ms): {resp.error}"
    tokens = f", {resp.tokens_used} tokens" if resp.tokens_used is not None else ""
    return f"[{provider_id}] ok ({resp.model_id}, {resp.execution_time_ms} ms{tokens})\n{resp.text}"


def handle_send(args: argparse.Namespace) -> int:
    """Execute the ``send`` subcommand."""
    try:
        registry = ProviderRegistry.from_config(args.providers)
        request = build_request(args)
    except UnknownProviderError as e:
        return _fail(e)
    except OSError as e:
        return _fail(OrchestrationValidationError(f"cannot read attachment: {e}"))
    store = SqliteCompletionStore(args.db) if args.db else None
    orchestrator = CompletionOrchestrator(registry, store=store)
    if args.live and not args.json:

        def _print_chunk(pid: str, chunk: StreamingChunk) -> None:
            if chunk.text:
                print(f"[{pid}] {chunk.text}", flush=True)

        orchestrator.subscribe_chunks(_print_chunk)
    try:
        results = asyncio.run(_send(orchestrator, registry, args.providers, request))
    except (OrchestrationValidationError, UnknownProviderError) as e:
        return _fail(e)
    failed = [pid for pid, r in results.items() if not r.ok]
    log_event(_logger, "cli.send", providers=list(results), failed=failed)
    if args.json:
        print(json.dumps({"perProvider": {pid: r.to_dict() for pid, r in results.items()}}))
    else:
        for pid, resp in results.items():
            print(format_result(pid, resp))
    return 1 if failed else 0


def handle_providers(args: argparse.Namespace) -> int:
    """Execute the ``providers`` subcommand."""
    registry = ProviderRegistry.from_config(supported())
    available = set(registry.available())
    rows = []
    for info in registry.infos():
        entry = info.to_dict()
        entry["available"] = info.id in available
        rows.append(entry)
    if args.json:
        print(json.dumps({"providers": rows}))
        return 0
    for row in rows:
        mark = "yes" if row["available"] else "no"
        print(f"{row['id']:<12} default={row['defaultModel']:<28} credential={mark}")
    return 0


async def _validate(registry: ProviderRegistry, provider: str, key: str) -> bool:
    try:
        return await registry.resolve(provider).validate_credential(key)
    finally:
        await registry.aclose()


def handle_validate(args: argparse.Namespace) -> int:
    """Execute the ``validate`` subcommand."""
    try:
        registry = ProviderRegistry.from_config([args.provider])
    except UnknownProviderError as e:
        return _fail(e)
    valid = asyncio.run(_validate(registry, args.provider, args.key))
    print(json.dumps({"provider": args.provider, "valid": valid}))
    return 0 if valid else 1


def resolve_log_level(value: Optional[str]) -> Optional[str]:
    """Normalize a ``--log-level`` value; unknown names yield ``None``."""
    if not value:
        return None
    v = value.strip().upper()
    return v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else None


__all__ = [
    "handle_send",
    "handle_providers",
    "handle_validate",
    "build_request",
    "read_attachment",
    "format_result",
    "resolve_log_level",
]
