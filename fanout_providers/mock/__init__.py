"""Mock provider package (offline, deterministic)."""

from .client import MockProvider

__all__ = ["MockProvider"]
