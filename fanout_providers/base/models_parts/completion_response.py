"""
CompletionResponse: the terminal outcome of one provider within a request.

A response with a non-empty ``error`` always has empty ``text``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class CompletionResponse:
    """Final per-provider result.

    Attributes:
        text: Aggregated completion text (empty on error).
        model_id: Model that served (or would have served) the request.
        execution_time_ms: Wall-clock time from task start to terminal state.
        tokens_used: Total tokens when the provider reported usage.
        error: ``"<code>: <message>"`` on failure, ``"cancelled"`` on cancel.
    """

    text: str
    model_id: str
    execution_time_ms: int
    tokens_used: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, model_id: str, error: str, execution_time_ms: int = 0) -> "CompletionResponse":
        return cls(text="", model_id=model_id, execution_time_ms=execution_time_ms, error=error)

    def to_dict(self) -> Dict[str, Any]:
        """Render the inbound-boundary shape; optional keys are omitted when unset."""
        out: Dict[str, Any] = {
            "text": self.text,
            "model": self.model_id,
            "executionTimeMs": self.execution_time_ms,
        }
        if self.tokens_used is not None:
            out["tokensUsed"] = self.tokens_used
        if self.error is not None:
            out["error"] = self.error
        return out


__all__ = ["CompletionResponse"]
