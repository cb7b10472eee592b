"""Cooperative cancellation token implementation.

Exposes the ``CancellationToken`` class shared between the orchestrator and
provider adapters so a ``cancel_all`` request reaches in-flight streams.
"""

from __future__ import annotations

from threading import Lock

from .state import State
from .cancelled_error import CancelledError


class CancellationToken:
    """A cooperative cancellation token.

    Thread-safe for ``cancel`` + ``raise_if_cancelled`` usage.
    """

    def __init__(self) -> None:
        self._state = State()
        self._lock = Lock()

    @property
    def cancelled(self) -> bool:  # noqa: D401 - short form
        """Whether cancellation has been requested."""
        return self._state.cancelled

    @property
    def reason(self) -> str | None:  # noqa: D401 - short form
        """Reason string supplied at cancel time (if any)."""
        return self._state.reason

    def cancel(self, reason: str | None = None) -> bool:
        """Request cancellation.

        Returns ``True`` only for the call that actually flipped the token.
        """
        with self._lock:
            if self._state.cancelled:
                return False
            self._state.cancelled = True
            self._state.reason = reason
        return True

    def raise_if_cancelled(self) -> None:
        """Raise ``CancelledError`` if token is cancelled."""
        if self._state.cancelled:
            raise CancelledError(self._state.reason or "cancelled")

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return (
            f"CancellationToken(cancelled={self._state.cancelled}, "
            f"reason={self._state.reason!r})"
        )


__all__ = ["CancellationToken"]
