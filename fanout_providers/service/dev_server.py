from __future__ import annotations

import os

import uvicorn

from fanout_providers.config.defaults import (
    FANOUT_SERVICE_DEFAULT_HOST,
    FANOUT_SERVICE_DEFAULT_PORT,
)


def _parse_port(value: str | None, default: int) -> int:
    """Best-effort parse of a port from string, falling back to the default."""
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def main() -> None:
    """Start the development server for the fan-out FastAPI app.

    - FANOUT_SERVICE_HOST: interface to bind (default "127.0.0.1")
    - FANOUT_SERVICE_PORT: port to bind (default 8092)
    - FANOUT_SERVICE_RELOAD: "true"/"false" to toggle auto-reload (default true)
    """
    host = os.getenv("FANOUT_SERVICE_HOST", FANOUT_SERVICE_DEFAULT_HOST)
    port = _parse_port(os.getenv("FANOUT_SERVICE_PORT"), FANOUT_SERVICE_DEFAULT_PORT)
    reload_env = os.getenv("FANOUT_SERVICE_RELOAD")
    reload_enabled = True if reload_env is None else reload_env.lower() == "true"

    uvicorn.run(
        "fanout_providers.service.app:app",
        host=host,
        port=port,
        reload=reload_enabled,
    )


if __name__ == "__main__":
    main()
