"""Server-side passthrough to provider APIs.

``POST /api/ai/{provider}/{path}`` forwards the JSON body to
``{adapter.base_url}/{path}`` with the credential the server holds and
streams the upstream body back with its status code and content type.
The body is decoded from any transfer compression, and a response that
httpx has already read is replayed from its buffer. The caller never sees
the key. Only HTTP adapters can be proxied; the mock
provider and unknown ids yield 400, a missing server credential 401.
"""

from __future__ import annotations

from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from fanout_providers.base.errors import ProviderError, UnknownProviderError
from fanout_providers.base.http import create_async_client
from fanout_providers.base.http_adapter import HTTPProviderAdapter
from fanout_providers.base.logging import get_logger, log_event
from fanout_providers.base.registry import ProviderRegistry
from fanout_providers.service.app_parts.app_core import bad_request, get_registry

router = APIRouter()
_logger = get_logger("service.proxy")


def get_proxy_transport() -> Optional[httpx.AsyncBaseTransport]:
    """FastAPI dependency for the upstream transport (``None`` means the network)."""
    return None


def _resolve_http_adapter(registry: ProviderRegistry, provider: str) -> HTTPProviderAdapter:
    try:
        adapter = registry.resolve(provider)
    except UnknownProviderError as e:
        raise bad_request(e) from e
    if not isinstance(adapter, HTTPProviderAdapter):
        raise HTTPException(status_code=400, detail=f"validation: provider '{provider}' cannot be proxied")
    return adapter


@router.post("/api/ai/{provider}/{path:path}")
async def post_proxy(
    provider: str,
    path: str,
    request: Request,
    registry: ProviderRegistry = Depends(get_registry),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_proxy_transport),
) -> StreamingResponse:
    adapter = _resolve_http_adapter(registry, provider)
    try:
        headers = adapter.upstream_headers()
    except ProviderError as e:
        raise HTTPException(status_code=401, detail=e.to_response_error()) from e
    body = await request.body()
    client = create_async_client(transport=transport)
    upstream = client.build_request(
        "POST", f"{adapter.base_url}/{path.lstrip('/')}", content=body, headers=headers
    )
    try:
        resp = await client.send(upstream, stream=True)
    except httpx.HTTPError as e:
        await client.aclose()
        raise HTTPException(status_code=502, detail=f"transient: {e}") from e
    log_event(_logger, "proxy.forward", provider=provider, path=path, status=resp.status_code)

    async def _close() -> None:
        await resp.aclose()
        await client.aclose()

    return StreamingResponse(
        resp.aiter_bytes(),
        status_code=resp.status_code,
        media_type=resp.headers.get("content-type"),
        background=BackgroundTask(_close),
    )


__all__ = ["router", "get_proxy_transport"]
