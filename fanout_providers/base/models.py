"""Data model public surface.

Re-exports the dataclasses under ``models_parts`` so adapters, the
orchestrator, and the service import from one stable path.
"""

from .models_parts.attachment import Attachment
from .models_parts.generation_options import GenerationOptions
from .models_parts.completion_request import CompletionRequest
from .models_parts.completion_response import CompletionResponse
from .models_parts.streaming_chunk import StreamingChunk
from .models_parts.provider_info import ProviderInfo
from .models_parts.request_state import (
    ALLOWED_TRANSITIONS,
    RequestState,
    RequestStatus,
)

__all__ = [
    "Attachment",
    "GenerationOptions",
    "CompletionRequest",
    "CompletionResponse",
    "StreamingChunk",
    "ProviderInfo",
    "RequestState",
    "RequestStatus",
    "ALLOWED_TRANSITIONS",
]
