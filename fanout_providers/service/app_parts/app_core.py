"""Service dependencies and request helpers.

Dependencies
------------
- ``get_registry``: process-wide :class:`ProviderRegistry` built lazily from
  configuration and environment credentials. Its HTTP adapters keep one
  client each, closed by ``close_registry`` at shutdown.
- ``get_store``: SQLite completion store, or ``None`` when
  ``FANOUT_PERSIST`` is ``false``.
- ``get_session``: :class:`StaticSessionProvider` with the user id from
  ``FANOUT_USER_ID``.
- ``get_orchestrator``: a fresh :class:`CompletionOrchestrator` per request,
  since an orchestrator runs one fan-out at a time.

Tests replace these with ``app.dependency_overrides``.

Error mapping
-------------
Validation errors and unknown providers map to HTTP 400 with
``"<code>: <message>"`` details. Provider failures never produce an HTTP
error; they are reported per provider in the result map.
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

from fastapi import Depends, HTTPException

from fanout_providers.base.dto import CompletionRequestDTO
from fanout_providers.base.errors import (
    OrchestrationError,
    OrchestrationValidationError,
    UnknownProviderError,
    describe_exception,
)
from fanout_providers.base.interfaces import SessionProvider, StaticSessionProvider
from fanout_providers.base.logging import get_logger, log_event
from fanout_providers.base.models import CompletionRequest, CompletionResponse
from fanout_providers.base.registry import ProviderRegistry
from fanout_providers.orchestration import CompletionOrchestrator
from fanout_providers.persistence.interfaces import ICompletionStore
from fanout_providers.persistence.sqlite import SqliteCompletionStore

_logger = get_logger("service")
_registry: Optional[ProviderRegistry] = None


def get_session() -> SessionProvider:
    """FastAPI dependency returning the session collaborator."""
    return StaticSessionProvider(user_id=os.getenv("FANOUT_USER_ID") or None)


def get_registry() -> ProviderRegistry:
    """FastAPI dependency returning the shared provider registry."""
    global _registry
    if _registry is None:
        _registry = ProviderRegistry.from_config(session=get_session(), reuse_connections=True)
    return _registry


async def close_registry() -> None:
    global _registry
    if _registry is not None:
        await _registry.aclose()
        _registry = None


def get_store() -> Optional[ICompletionStore]:
    """FastAPI dependency returning the completion store (``None`` disables persistence)."""
    if os.getenv("FANOUT_PERSIST", "true").strip().lower() in {"0", "false", "no", "off"}:
        return None
    return SqliteCompletionStore(os.getenv("FANOUT_DB_PATH") or None)


def get_orchestrator(
    registry: ProviderRegistry = Depends(get_registry),
    store: Optional[ICompletionStore] = Depends(get_store),
    session: SessionProvider = Depends(get_session),
) -> CompletionOrchestrator:
    """FastAPI dependency returning a new orchestrator for one request."""
    return CompletionOrchestrator(registry, store=store, session=session)


def bad_request(exc: Exception) -> HTTPException:
    return HTTPException(status_code=400, detail=describe_exception(exc))


def prepare_request(
    body: CompletionRequestDTO, orchestrator: CompletionOrchestrator
) -> tuple[List[str], CompletionRequest]:
    """Convert the DTO and run the orchestrator's checks (400 on failure)."""
    request = body.to_domain()
    try:
        ids = orchestrator.check(body.provider_ids, request)
    except (OrchestrationValidationError, UnknownProviderError) as e:
        raise bad_request(e) from e
    return ids, request


def per_provider_payload(results: Dict[str, CompletionResponse]) -> Dict[str, Any]:
    return {pid: resp.to_dict() for pid, resp in results.items()}


async def handle_completions(
    body: CompletionRequestDTO, orchestrator: CompletionOrchestrator
) -> Dict[str, Any]:
    """Run a fan-out request and return ``{"ok": True, "perProvider": {...}}``."""
    ids, request = prepare_request(body, orchestrator)
    try:
        results = await orchestrator.send_to_multiple_services(ids, request)
    except (OrchestrationValidationError, UnknownProviderError) as e:
        raise bad_request(e) from e
    except OrchestrationError as e:
        raise HTTPException(status_code=409, detail=describe_exception(e)) from e
    log_event(
        _logger,
        "service.completions",
        providers=ids,
        failed=[pid for pid, r in results.items() if not r.ok],
    )
    return {"ok": True, "perProvider": per_provider_payload(results)}


def build_providers_response(registry: ProviderRegistry) -> Dict[str, Any]:
    """Catalog entries with a per-provider ``available`` flag."""
    available = set(registry.available())
    providers = []
    for info in registry.infos():
        entry = info.to_dict()
        entry["available"] = info.id in available
        providers.append(entry)
    return {"ok": True, "providers": providers}


__all__ = [
    "get_session",
    "get_registry",
    "close_registry",
    "get_store",
    "get_orchestrator",
    "bad_request",
    "prepare_request",
    "per_provider_payload",
    "handle_completions",
    "build_providers_response",
]
