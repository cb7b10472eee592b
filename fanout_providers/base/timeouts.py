"""Unified timeout configuration for adapters and the orchestrator.

This module centralizes the timeout values used across provider adapters
(HTTP connect/read) and the orchestrator (per-provider wall-clock deadline).

Key Components
--------------
TimeoutConfig
    Frozen dataclass capturing normalized timeout values in seconds.

get_timeout_config()
    Returns a process-cached configuration, re-parsing environment overrides
    only when the relevant variables change. Supported environment variables
    (all optional):
        FANOUT_TIMEOUT_CONNECT_SECONDS
        FANOUT_TIMEOUT_HTTP_SECONDS
        FANOUT_PROVIDER_DEADLINE_SECONDS

build_httpx_timeout(cfg)
    Translate the config into an ``httpx.Timeout`` for async clients.

Design Constraints
------------------
1. No hard-coded ad-hoc timeouts outside this module and ``config.defaults``.
2. Avoid per-call env parsing (cache after first read).
3. Deadlines are enforced with ``asyncio.wait_for`` by the orchestrator; no
   signal-based guards are needed on the event loop.
"""
from __future__ import annotations

from dataclasses import dataclass
import os

import httpx

from ..config.defaults import ORCHESTRATOR_PROVIDER_DEADLINE_SECONDS


@dataclass(frozen=True)
class TimeoutConfig:
    """Container for normalized timeout values (seconds).

    Attributes:
        connect_timeout_seconds: Timeout for establishing the TCP/TLS
            connection to a provider.
        http_timeout_seconds: Read/write/pool timeout for individual HTTP
            operations, including the gap between streamed chunks.
        provider_deadline_seconds: Absolute cap for one provider task inside
            a fan-out request. Expiry produces a ``timeout`` error response.
    """

    connect_timeout_seconds: float = 10.0
    http_timeout_seconds: float = 30.0
    provider_deadline_seconds: float = ORCHESTRATOR_PROVIDER_DEADLINE_SECONDS


_CACHED: TimeoutConfig | None = None
_ENV_GUARD: str | None = None

_ENV_NAMES = (
    "FANOUT_TIMEOUT_CONNECT_SECONDS",
    "FANOUT_TIMEOUT_HTTP_SECONDS",
    "FANOUT_PROVIDER_DEADLINE_SECONDS",
)


def _parse_env_float(name: str, default: float) -> float:
    """Parse an environment variable as a positive float with a fallback default.

    Returns the default if the variable is unset, not a valid float, or not
    positive.
    """
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        val = float(raw)
    except ValueError:
        return default
    return val if val > 0 else default


def get_timeout_config() -> TimeoutConfig:
    """Return process-cached `TimeoutConfig` instance.

    The cache is refreshed when any of the supported environment variables
    changes, which lets tests adjust deadlines with ``monkeypatch.setenv``.
    """
    global _CACHED, _ENV_GUARD  # noqa: PLW0603 - intentional, documented module cache
    cur_guard = "/".join(os.getenv(n, "") for n in _ENV_NAMES)
    if _CACHED is not None and _ENV_GUARD == cur_guard:
        return _CACHED

    defaults = TimeoutConfig()
    _CACHED = TimeoutConfig(
        connect_timeout_seconds=_parse_env_float(
            "FANOUT_TIMEOUT_CONNECT_SECONDS", defaults.connect_timeout_seconds
        ),
        http_timeout_seconds=_parse_env_float(
            "FANOUT_TIMEOUT_HTTP_SECONDS", defaults.http_timeout_seconds
        ),
        provider_deadline_seconds=_parse_env_float(
            "FANOUT_PROVIDER_DEADLINE_SECONDS", defaults.provider_deadline_seconds
        ),
    )
    _ENV_GUARD = cur_guard
    return _CACHED


def build_httpx_timeout(cfg: TimeoutConfig | None = None) -> httpx.Timeout:
    """Return an ``httpx.Timeout`` derived from ``cfg`` (or the cached config)."""
    cfg = cfg or get_timeout_config()
    return httpx.Timeout(cfg.http_timeout_seconds, connect=cfg.connect_timeout_seconds)


__all__ = [
    "TimeoutConfig",
    "get_timeout_config",
    "build_httpx_timeout",
]
