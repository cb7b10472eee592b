"""Streaming primitives: wire-format normalizers, the chunk channel, progress, metrics."""

from .line_buffer import LineBuffer
from .normalizers import (
    NDJSONNormalizer,
    SSEDoneNormalizer,
    StreamNormalizer,
    TypedEventNormalizer,
    normalize_stream,
)
from .channel import ChunkChannel
from .progress import streaming_progress
from .streaming_metrics import StreamMetrics

__all__ = [
    "LineBuffer",
    "StreamNormalizer",
    "SSEDoneNormalizer",
    "TypedEventNormalizer",
    "NDJSONNormalizer",
    "normalize_stream",
    "ChunkChannel",
    "streaming_progress",
    "StreamMetrics",
]
