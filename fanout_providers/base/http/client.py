"""Async HTTP client construction for provider adapters.

Purpose:
    Build ``httpx.AsyncClient`` instances with timeouts derived exclusively
    from :func:`get_timeout_config`, so no adapter hard-codes numeric
    timeouts.

Lifecycle:
    Adapters either receive a caller-owned client (tests inject one backed by
    ``httpx.MockTransport``; long-lived services may share one) or open a
    short-lived client per call with ``async with``. Async clients are bound
    to the event loop that first uses their connections, so a process-wide
    pool would not be safe across loops.
"""

from __future__ import annotations

from typing import Mapping, Optional

import httpx

from ..timeouts import build_httpx_timeout


def create_async_client(
    base_url: Optional[str] = None,
    *,
    headers: Optional[Mapping[str, str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Return a new ``httpx.AsyncClient`` configured with shared timeouts.

    Parameters:
        base_url: Optional base URL so callers may issue relative requests.
        headers: Default headers applied to every request.
        transport: Optional transport override (``httpx.MockTransport`` in tests).
    """
    kwargs = {"timeout": build_httpx_timeout(), "headers": dict(headers or {})}
    if base_url:
        kwargs["base_url"] = base_url
    if transport is not None:
        kwargs["transport"] = transport
    return httpx.AsyncClient(**kwargs)


__all__ = ["create_async_client"]
