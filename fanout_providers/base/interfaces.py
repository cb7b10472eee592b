"""Provider-facing contracts (public surface)."""

from .interfaces_parts.provider_adapter import ChunkCallback, ProviderAdapter
from .interfaces_parts.session_provider import SessionProvider, StaticSessionProvider

__all__ = [
    "ProviderAdapter",
    "ChunkCallback",
    "SessionProvider",
    "StaticSessionProvider",
]
