"""
Per-provider lifecycle record and status enumeration.

Allowed transitions::

    idle -> loading | error
    loading -> streaming | success | error
    streaming -> success | error

``success`` and ``error`` are terminal.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional

from .completion_response import CompletionResponse


class RequestStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    STREAMING = "streaming"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def terminal(self) -> bool:
        return self in (RequestStatus.SUCCESS, RequestStatus.ERROR)


ALLOWED_TRANSITIONS: Dict[RequestStatus, FrozenSet[RequestStatus]] = {
    RequestStatus.IDLE: frozenset({RequestStatus.LOADING, RequestStatus.ERROR}),
    RequestStatus.LOADING: frozenset(
        {RequestStatus.STREAMING, RequestStatus.SUCCESS, RequestStatus.ERROR}
    ),
    RequestStatus.STREAMING: frozenset({RequestStatus.SUCCESS, RequestStatus.ERROR}),
    RequestStatus.SUCCESS: frozenset(),
    RequestStatus.ERROR: frozenset(),
}


@dataclass
class RequestState:
    """Mutable lifecycle slot owned by the state tracker.

    Once terminal, exactly one of ``response`` (success) or ``error`` is set.
    ``progress`` is in ``[0, 100]`` and never decreases.
    """

    provider_id: str
    model_id: str
    status: RequestStatus = RequestStatus.IDLE
    progress: int = 0
    response: Optional[CompletionResponse] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "providerId": self.provider_id,
            "modelId": self.model_id,
            "status": self.status.value,
            "progress": self.progress,
            "error": self.error,
        }


__all__ = ["RequestStatus", "RequestState", "ALLOWED_TRANSITIONS"]
