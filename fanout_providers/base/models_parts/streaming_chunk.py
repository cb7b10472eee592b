"""
StreamingChunk: one normalized increment of a provider stream.

Every stream is zero or more chunks with ``is_complete=False`` followed by
exactly one with ``is_complete=True``. Only the terminal chunk may carry
``error`` or ``tokens_used``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StreamingChunk:
    text: str
    is_complete: bool = False
    error: Optional[str] = None
    tokens_used: Optional[int] = None

    @classmethod
    def terminal(cls, *, error: Optional[str] = None, tokens_used: Optional[int] = None) -> "StreamingChunk":
        return cls(text="", is_complete=True, error=error, tokens_used=tokens_used)


__all__ = ["StreamingChunk"]
