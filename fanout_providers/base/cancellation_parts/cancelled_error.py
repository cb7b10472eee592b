"""Cancellation error type.

Defines the public ``CancelledError`` raised when a provider call observes a
cancellation request on its token.
"""

from __future__ import annotations


class CancelledError(RuntimeError):
    """Raised when an operation is cancelled cooperatively.

    Distinct from ``asyncio.CancelledError``: this one is raised by code that
    polls a :class:`CancellationToken`, and it is an ordinary exception that
    adapters translate into a terminal ``"cancelled"`` chunk.
    """

__all__ = ["CancelledError"]
