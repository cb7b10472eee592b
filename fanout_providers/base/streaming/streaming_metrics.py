"""Streaming metrics data structures.

Collected per provider task by the orchestrator and emitted on the
``stream.end`` log event.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..models import StreamingChunk


@dataclass
class StreamMetrics:
    """Collected streaming metrics for a single provider invocation."""

    emitted: int = 0
    characters: int = 0
    time_to_first_token_ms: Optional[float] = None
    total_duration_ms: Optional[float] = None
    tokens_used: Optional[int] = None
    _t0: float = field(default_factory=time.perf_counter, repr=False)

    def record(self, chunk: StreamingChunk) -> None:
        """Account for one chunk; the terminal chunk also closes the timer."""
        if chunk.text:
            if self.time_to_first_token_ms is None:
                self.time_to_first_token_ms = (time.perf_counter() - self._t0) * 1000.0
            self.emitted += 1
            self.characters += len(chunk.text)
        if chunk.tokens_used is not None:
            self.tokens_used = chunk.tokens_used
        if chunk.is_complete:
            self.finish()

    def finish(self) -> None:
        if self.total_duration_ms is None:
            self.total_duration_ms = (time.perf_counter() - self._t0) * 1000.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "emitted": self.emitted,
            "characters": self.characters,
            "time_to_first_token_ms": self.time_to_first_token_ms,
            "total_duration_ms": self.total_duration_ms,
        }


__all__ = ["StreamMetrics"]
