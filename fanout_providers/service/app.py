from __future__ import annotations

import os
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fanout_providers.base.dto import CompletionRequestDTO, KeyValidationDTO
from fanout_providers.base.errors import UnknownProviderError
from fanout_providers.base.registry import ProviderRegistry
from fanout_providers.config.defaults import FANOUT_SERVICE_CORS_DEFAULT_ORIGINS
from fanout_providers.orchestration import CompletionOrchestrator

from .app_parts.app_core import (
    bad_request,
    build_providers_response,
    close_registry,
    get_orchestrator,
    get_registry,
    handle_completions,
)
from .app_parts.proxy import router as proxy_router
from .completions_stream import router as stream_router

app = FastAPI(title="Fan-out Completion Service", version="0.1.0")


@app.on_event("shutdown")
async def _close_adapters() -> None:
    """Release adapter HTTP clients held by the shared registry."""
    await close_registry()


@app.exception_handler(RequestValidationError)
async def _validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
    """Report body validation failures as 400 like every other validation error."""
    return JSONResponse(status_code=400, content={"ok": False, "detail": jsonable_encoder(exc.errors())})


# ---------------------------------------------------------------------------
# CORS configuration
# ---------------------------------------------------------------------------

cors_origins_env = os.getenv("FANOUT_SERVICE_CORS_ORIGINS", FANOUT_SERVICE_CORS_DEFAULT_ORIGINS)
allow_origins = [o.strip() for o in cors_origins_env.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@app.get("/api/health")
def health() -> Dict[str, Any]:
    return {"ok": True}


# ---------------------------------------------------------------------------
# Provider catalog and credentials
# ---------------------------------------------------------------------------


@app.get("/api/providers")
def get_providers(registry: ProviderRegistry = Depends(get_registry)) -> Dict[str, Any]:
    """List registered providers with models, capabilities, and availability."""
    return build_providers_response(registry)


@app.get("/api/ai/available")
def get_available(registry: ProviderRegistry = Depends(get_registry)) -> Dict[str, Any]:
    """Ids of providers the server can call right now (own key or proxy)."""
    return {"ok": True, "available": registry.available()}


@app.post("/api/keys/validate")
async def post_validate_key(
    body: KeyValidationDTO, registry: ProviderRegistry = Depends(get_registry)
) -> Dict[str, Any]:
    """Check a caller-supplied key against the provider without storing it."""
    try:
        adapter = registry.resolve(body.provider_id)
    except UnknownProviderError as e:
        raise bad_request(e) from e
    valid = await adapter.validate_credential(body.api_key)
    return {"ok": True, "providerId": body.provider_id, "valid": valid}


# ---------------------------------------------------------------------------
# Completions
# ---------------------------------------------------------------------------


@app.post("/api/completions")
async def post_completions(
    body: CompletionRequestDTO,
    orchestrator: CompletionOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    """Fan the prompt out and return ``{"ok": True, "perProvider": {...}}``.

    Provider failures are reported inside ``perProvider``; only validation
    errors and unknown providers produce a 400.
    """
    return await handle_completions(body, orchestrator)


app.include_router(stream_router)
app.include_router(proxy_router)


def get_app() -> FastAPI:
    """Return the FastAPI application instance."""
    return app
