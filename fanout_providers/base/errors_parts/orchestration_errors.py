"""
Errors raised by the orchestrator and registry before any provider runs.

These are caller mistakes or configuration problems rather than provider
failures, so they propagate instead of becoming per-provider responses.
"""
from __future__ import annotations

from .error_code import ErrorCode


class OrchestrationValidationError(ValueError):
    """Raised when a request is rejected before any provider task starts.

    Covers an empty provider id list and a blank prompt. No persistence or
    network call has happened when this is raised.
    """

    code = ErrorCode.VALIDATION


class UnknownProviderError(LookupError):
    """Raised when a provider id cannot be resolved by the registry.

    Failure modes include an id missing from the registry, an adapter module
    that fails to import, a missing adapter class, and a constructor error.
    """

    code = ErrorCode.NOT_FOUND


class OrchestrationError(RuntimeError):
    """Raised when an orchestrator instance is misused (e.g. re-entered)."""

    code = ErrorCode.CONFLICT


class PersistenceError(RuntimeError):
    """Raised by persistence collaborators; the orchestrator only logs it."""

    code = ErrorCode.PERSISTENCE


__all__ = [
    "OrchestrationValidationError",
    "UnknownProviderError",
    "OrchestrationError",
    "PersistenceError",
]
