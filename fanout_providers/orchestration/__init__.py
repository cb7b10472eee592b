"""Fan-out orchestration: per-provider state tracking and the orchestrator."""

from .orchestrator import ChunkListener, CompletionOrchestrator
from .request_state import ProgressListener, RequestStateTracker, StatusListener

__all__ = [
    "CompletionOrchestrator",
    "ChunkListener",
    "RequestStateTracker",
    "StatusListener",
    "ProgressListener",
]
