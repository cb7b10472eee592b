"""ProviderAdapter Protocol (single-class module).

Structural contract every provider adapter satisfies. The orchestrator only
talks to adapters through this surface.
"""

from __future__ import annotations

from typing import AsyncIterator, Awaitable, Callable, Dict, Optional, Protocol, Union, runtime_checkable

from ..cancellation import CancellationToken
from ..models import CompletionRequest, CompletionResponse, ProviderInfo, StreamingChunk

ChunkCallback = Callable[[StreamingChunk], Union[None, Awaitable[None]]]


@runtime_checkable
class ProviderAdapter(Protocol):
    """Uniform completion surface over one AI provider.

    Implementations never raise from ``generate_completion`` or the streaming
    calls for provider or transport failures: failures become a response with
    ``error`` set, or a terminal chunk with ``error`` set.
    """

    @property
    def info(self) -> ProviderInfo:  # pragma: no cover - interface
        ...

    def select_model(self, request: CompletionRequest) -> str:  # pragma: no cover - interface
        ...

    async def generate_completion(
        self, request: CompletionRequest, token: Optional[CancellationToken] = None
    ) -> CompletionResponse:  # pragma: no cover - interface
        ...

    def stream_completion(
        self, request: CompletionRequest, token: Optional[CancellationToken] = None
    ) -> AsyncIterator[StreamingChunk]:  # pragma: no cover - interface
        """Yield zero or more partial chunks then exactly one terminal chunk."""
        ...

    async def generate_streaming_completion(
        self,
        request: CompletionRequest,
        on_chunk: ChunkCallback,
        token: Optional[CancellationToken] = None,
    ) -> None:  # pragma: no cover - interface
        ...

    async def validate_credential(self, secret: str) -> bool:  # pragma: no cover - interface
        ...

    def auth_headers(self, secret: Optional[str]) -> Dict[str, str]:  # pragma: no cover - interface
        ...

    async def aclose(self) -> None:  # pragma: no cover - interface
        ...


__all__ = ["ProviderAdapter", "ChunkCallback"]
