"""Allows running the CLI via ``python -m fanout_providers.service.cli``."""

from __future__ import annotations

from . import main


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
