"""HTTP helpers shared by provider adapters."""

from .client import create_async_client

__all__ = ["create_async_client"]
