"""Per-provider request state tracker.

Purpose
-------
Own one :class:`RequestState` slot per provider for the duration of a
fan-out request, enforce the lifecycle transitions, keep progress monotonic,
and notify observers.

Rules
-----
- Transitions outside ``ALLOWED_TRANSITIONS`` are rejected (``False``) and
  logged at debug level; they never raise. Terminal states accept nothing,
  which is what makes ``cancel_all`` racing a late success safe.
- Progress updates are clamped to ``[0, 100]``; values not greater than the
  current progress, and any update on a terminal slot, are ignored.
- ``succeed`` forces progress to 100. ``fail`` leaves progress untouched.
- Status and progress listeners are independent lists. A listener that
  raises is logged and skipped so it cannot break a provider task.

Thread-safety
-------------
Slot mutation happens under a lock; listeners are invoked outside it with
copies of the state.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from threading import Lock
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..base.logging import get_logger, log_event
from ..base.models import (
    ALLOWED_TRANSITIONS,
    CompletionResponse,
    RequestState,
    RequestStatus,
)

StatusListener = Callable[[str, RequestState], None]
ProgressListener = Callable[[str, int], None]


class RequestStateTracker:
    def __init__(self) -> None:
        self._states: Dict[str, RequestState] = {}
        self._lock = Lock()
        self._status_listeners: List[StatusListener] = []
        self._progress_listeners: List[ProgressListener] = []
        self._logger = get_logger(__name__)

    # ----------------------------------------------------------- subscription

    def subscribe_status(self, listener: StatusListener) -> Callable[[], None]:
        """Register a status listener; returns an unsubscribe callable."""
        self._status_listeners.append(listener)
        return lambda: self._remove(self._status_listeners, listener)

    def subscribe_progress(self, listener: ProgressListener) -> Callable[[], None]:
        """Register a progress listener; returns an unsubscribe callable."""
        self._progress_listeners.append(listener)
        return lambda: self._remove(self._progress_listeners, listener)

    @staticmethod
    def _remove(listeners: list, listener: object) -> None:
        if listener in listeners:
            listeners.remove(listener)

    # -------------------------------------------------------------- lifecycle

    def reset(self, entries: Iterable[Tuple[str, str]]) -> None:
        """Replace all slots with fresh idle states for ``(provider_id, model_id)`` pairs."""
        with self._lock:
            self._states = {pid: RequestState(provider_id=pid, model_id=model) for pid, model in entries}
        for pid in list(self._states):
            self._notify_status(pid)

    def transition(self, provider_id: str, status: RequestStatus) -> bool:
        """Move a slot to ``status`` when the lifecycle allows it."""
        with self._lock:
            state = self._states.get(provider_id)
            if state is None or status not in ALLOWED_TRANSITIONS[state.status]:
                current = state.status.value if state else None
                allowed = False
            else:
                state.status = status
                allowed = True
        if not allowed:
            log_event(
                self._logger,
                "state.transition_rejected",
                level=logging.DEBUG,
                provider=provider_id,
                current=current,
                requested=status.value,
            )
            return False
        self._notify_status(provider_id)
        return True

    def update_progress(self, provider_id: str, value: float) -> bool:
        """Raise progress to ``value`` (clamped); lower or equal values are ignored."""
        clamped = int(max(0, min(100, value)))
        with self._lock:
            state = self._states.get(provider_id)
            if state is None or state.status.terminal or clamped <= state.progress:
                return False
            state.progress = clamped
        self._notify_progress(provider_id, clamped)
        return True

    def succeed(self, provider_id: str, response: CompletionResponse) -> bool:
        """Terminal success: progress 100, status success, response stored."""
        with self._lock:
            state = self._states.get(provider_id)
            if state is None or RequestStatus.SUCCESS not in ALLOWED_TRANSITIONS[state.status]:
                return False
            raised = state.progress < 100
            state.progress = 100
            state.status = RequestStatus.SUCCESS
            state.response = response
            state.error = None
        if raised:
            self._notify_progress(provider_id, 100)
        self._notify_status(provider_id)
        return True

    def fail(self, provider_id: str, message: str) -> bool:
        """Terminal error with ``message``; progress is left where it was."""
        with self._lock:
            state = self._states.get(provider_id)
            if state is None or RequestStatus.ERROR not in ALLOWED_TRANSITIONS[state.status]:
                return False
            state.status = RequestStatus.ERROR
            state.error = message
            state.response = None
        self._notify_status(provider_id)
        return True

    # ---------------------------------------------------------------- queries

    def get(self, provider_id: str) -> Optional[RequestState]:
        with self._lock:
            state = self._states.get(provider_id)
            return replace(state) if state is not None else None

    def snapshot(self) -> Dict[str, RequestState]:
        with self._lock:
            return {pid: replace(s) for pid, s in self._states.items()}

    def non_terminal(self) -> List[str]:
        with self._lock:
            return [pid for pid, s in self._states.items() if not s.status.terminal]

    # ---------------------------------------------------------- notification

    def _notify_status(self, provider_id: str) -> None:
        state = self.get(provider_id)
        if state is None:
            return
        for listener in list(self._status_listeners):
            try:
                listener(provider_id, state)
            except Exception as exc:  # listener failures must not break the task
                log_event(
                    self._logger,
                    "state.listener_error",
                    level=logging.WARNING,
                    provider=provider_id,
                    kind="status",
                    error=repr(exc),
                )

    def _notify_progress(self, provider_id: str, value: int) -> None:
        for listener in list(self._progress_listeners):
            try:
                listener(provider_id, value)
            except Exception as exc:  # listener failures must not break the task
                log_event(
                    self._logger,
                    "state.listener_error",
                    level=logging.WARNING,
                    provider=provider_id,
                    kind="progress",
                    error=repr(exc),
                )


__all__ = ["RequestStateTracker", "StatusListener", "ProgressListener"]
