"""Cooperative cancellation primitives (public API facade).

Expose provider-agnostic cancellation constructs via the canonical
``fanout_providers.base.cancellation`` import path while the concrete
implementations live under ``cancellation_parts``.

- ``CancellationToken`` carries a ``cancel_all`` request from the
  orchestrator into each provider's stream loop.
- ``CancelledError`` is raised by operations that observe a cancellation request.
"""

from .cancellation_parts.cancelled_error import CancelledError
from .cancellation_parts.cancellation_token import CancellationToken

__all__ = ["CancellationToken", "CancelledError"]
