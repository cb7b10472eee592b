"""
Providers Base Package

Exports provider-agnostic contracts, models, errors, and the registry used by
the orchestrator and the service layer.

- Interfaces: the adapter and session protocols
- Models: frozen request/response/chunk dataclasses and request state
- Streaming: wire-format normalizers and the chunk channel
- Registry: lazy creation of provider adapters by canonical name
"""

from .cancellation import CancellationToken, CancelledError
from .errors import ErrorCode, ProviderError, UnknownProviderError, classify_exception
from .interfaces import ProviderAdapter, SessionProvider, StaticSessionProvider
from .models import (
    Attachment,
    CompletionRequest,
    CompletionResponse,
    GenerationOptions,
    ProviderInfo,
    RequestState,
    RequestStatus,
    StreamingChunk,
)
from .registry import ProviderRegistry, create_adapter, supported
from .streaming import (
    ChunkChannel,
    NDJSONNormalizer,
    SSEDoneNormalizer,
    StreamMetrics,
    TypedEventNormalizer,
)
from .timeouts import TimeoutConfig, get_timeout_config

__all__ = [
    "CancellationToken",
    "CancelledError",
    "ErrorCode",
    "ProviderError",
    "UnknownProviderError",
    "classify_exception",
    "ProviderAdapter",
    "SessionProvider",
    "StaticSessionProvider",
    "Attachment",
    "CompletionRequest",
    "CompletionResponse",
    "GenerationOptions",
    "ProviderInfo",
    "RequestState",
    "RequestStatus",
    "StreamingChunk",
    "ProviderRegistry",
    "create_adapter",
    "supported",
    "ChunkChannel",
    "NDJSONNormalizer",
    "SSEDoneNormalizer",
    "StreamMetrics",
    "TypedEventNormalizer",
    "TimeoutConfig",
    "get_timeout_config",
]
