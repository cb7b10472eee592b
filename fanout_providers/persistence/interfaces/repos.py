"""Completion store contract and persisted record DTOs.

The orchestrator depends only on :class:`ICompletionStore`; concrete
implementations live under ``persistence/sqlite/``. Store methods are
synchronous and are called through ``asyncio.to_thread`` so blocking I/O
never runs on the event loop.

Failure semantics
-----------------
Implementations raise on I/O or integrity failures. The orchestrator treats
persistence as best-effort: it logs ``persistence.error`` and keeps going.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from ...base.models import CompletionRequest, CompletionResponse


@dataclass
class PromptRecord:
    """One persisted fan-out prompt.

    Attributes
    ----------
    id: Opaque record id.
    prompt: Prompt text as sent.
    attachment_names: Names of the attachments (payloads are not stored).
    metadata: Caller metadata (request id, user id, provider ids).
    created_at: UTC timestamp.
    """

    id: str
    prompt: str
    attachment_names: List[str]
    metadata: Dict[str, Any]
    created_at: datetime


@dataclass
class ResponseRecord:
    """One persisted per-provider outcome, successful or not."""

    id: int
    prompt_id: Optional[str]
    provider_id: str
    model_id: str
    text: str
    error: Optional[str]
    execution_time_ms: int
    tokens_used: Optional[int]
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ICompletionStore(Protocol):
    """Persistence collaborator used by the orchestrator."""

    def save_prompt(self, request: CompletionRequest, metadata: Dict[str, Any]) -> Optional[str]:
        """Persist the prompt and return its record id (``None`` if not stored)."""
        ...

    def save(self, response: CompletionResponse, metadata: Dict[str, Any]) -> None:
        """Persist one provider outcome.

        ``metadata`` carries at least ``provider_id``, ``request_id``,
        ``prompt_id`` and ``user_id``.
        """
        ...
