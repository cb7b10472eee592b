"""Fan-out completion orchestrator.

Purpose
-------
Send one :class:`CompletionRequest` to several provider adapters
concurrently, aggregate each provider's stream, keep the per-provider
:class:`RequestStateTracker` current, persist outcomes best-effort, and
return a result map with exactly one entry per requested provider.

Flow
----
1. Validate (empty id list or blank prompt raise
   :class:`OrchestrationValidationError`; unknown ids raise
   :class:`UnknownProviderError`). Nothing has started when these raise.
2. Resolve models and reset tracker slots to ``idle``.
3. Save the prompt, then start one asyncio task per provider under the
   per-provider deadline. Streaming goes through a bounded
   :class:`ChunkChannel`; non-streaming calls ``generate_completion``.
4. Success: tracker ``success`` first, then the response is persisted.
5. Failure of any kind: tracker ``error`` and an empty-text response with
   ``error`` set, persisted as well.
6. Join all tasks (``gather(..., return_exceptions=True)``) so one provider
   can never fail the others.

Cancellation
------------
``cancel_all`` marks every non-terminal slot ``error`` with the reason,
cancels the provider's :class:`CancellationToken`, and cancels its task so
an in-flight HTTP read unblocks. It must be called from the event loop
thread. Terminal slots are left alone, so a call after completion is a
no-op.
"""
from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..base.cancellation import CancellationToken
from ..base.errors import (
    ErrorCode,
    OrchestrationError,
    OrchestrationValidationError,
)
from ..base.http_adapter import classify_code, error_text
from ..base.interfaces import ProviderAdapter, SessionProvider
from ..base.logging import LogContext, get_logger, log_event, normalized_log_event
from ..base.models import (
    CompletionRequest,
    CompletionResponse,
    RequestState,
    RequestStatus,
    StreamingChunk,
)
from ..base.registry import ProviderRegistry
from ..base.streaming import ChunkChannel, StreamMetrics, streaming_progress
from ..base.timeouts import TimeoutConfig, get_timeout_config
from ..config.defaults import CANCELLED_REASON, ORCHESTRATOR_CHANNEL_MAX_CHUNKS
from ..persistence.interfaces import ICompletionStore
from .request_state import RequestStateTracker

ChunkListener = Callable[[str, StreamingChunk], None]


def _elapsed_ms(t0: float) -> int:
    return int(round((time.perf_counter() - t0) * 1000))


class CompletionOrchestrator:
    """Run one fan-out request at a time against a :class:`ProviderRegistry`."""

    def __init__(
        self,
        registry: ProviderRegistry,
        store: Optional[ICompletionStore] = None,
        session: Optional[SessionProvider] = None,
        timeouts: Optional[TimeoutConfig] = None,
        channel_size: int = ORCHESTRATOR_CHANNEL_MAX_CHUNKS,
    ) -> None:
        self._registry = registry
        self._store = store
        self._session = session
        self._timeouts = timeouts
        self._channel_size = channel_size
        self.tracker = RequestStateTracker()
        self._chunk_listeners: List[ChunkListener] = []
        self._tasks: Dict[str, asyncio.Task] = {}
        self._tokens: Dict[str, CancellationToken] = {}
        self._started: Dict[str, float] = {}
        self._persisted: set[str] = set()
        self._running = False
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------ observers

    def subscribe_chunks(self, listener: ChunkListener) -> Callable[[], None]:
        """Observe every chunk as ``listener(provider_id, chunk)``."""
        self._chunk_listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._chunk_listeners:
                self._chunk_listeners.remove(listener)

        return _unsubscribe

    def get_request_states(self) -> Dict[str, RequestState]:
        return self.tracker.snapshot()

    @property
    def running(self) -> bool:
        return self._running

    # ----------------------------------------------------------- operations

    async def send_to_multiple_services(
        self, provider_ids: Iterable[str], request: CompletionRequest
    ) -> Dict[str, CompletionResponse]:
        """Fan ``request`` out to ``provider_ids`` and return one response per id."""
        ids = self.check(provider_ids, request)
        adapters = {pid: self._registry.resolve(pid) for pid in ids}
        if self._running:
            raise OrchestrationError("a fan-out request is already running on this orchestrator")
        self._running = True
        request_id = uuid.uuid4().hex
        models = {pid: adapters[pid].select_model(request) for pid in ids}
        log_event(self._logger, "orchestrator.start", request_id=request_id, providers=ids)
        try:
            self.tracker.reset((pid, models[pid]) for pid in ids)
            self._tokens = {pid: CancellationToken() for pid in ids}
            self._persisted = set()
            prompt_id = await self._save_prompt(request, ids, request_id)
            deadline = (self._timeouts or get_timeout_config()).provider_deadline_seconds
            for pid in ids:
                self._started[pid] = time.perf_counter()
                self._tasks[pid] = asyncio.create_task(
                    self._run_provider(pid, adapters[pid], models[pid], request, deadline, request_id, prompt_id),
                    name=f"fanout:{pid}",
                )
            try:
                outcomes = await asyncio.gather(*self._tasks.values(), return_exceptions=True)
            except asyncio.CancelledError:
                self.cancel_all()
                raise
            results: Dict[str, CompletionResponse] = {}
            for pid, outcome in zip(ids, outcomes):
                if isinstance(outcome, CompletionResponse):
                    results[pid] = outcome
                else:
                    results[pid] = await self._settle_abandoned(
                        pid, models[pid], outcome, request_id, prompt_id
                    )
            log_event(
                self._logger,
                "orchestrator.end",
                request_id=request_id,
                succeeded=[pid for pid, r in results.items() if r.ok],
                failed=[pid for pid, r in results.items() if not r.ok],
            )
            return results
        finally:
            self._tasks = {}
            self._started = {}
            self._running = False

    def check(self, provider_ids: Iterable[str], request: CompletionRequest) -> List[str]:
        """Validate a request without starting it; returns the de-duplicated ids.

        Raises :class:`OrchestrationValidationError` or
        :class:`UnknownProviderError` exactly as ``send_to_multiple_services``
        would.
        """
        ids = self._validate(provider_ids, request)
        for pid in ids:
            self._registry.resolve(pid)
        return ids

    def cancel_all(self, reason: str = CANCELLED_REASON) -> List[str]:
        """Cancel every provider that has not reached a terminal state.

        Returns the ids that were cancelled by this call (empty when there
        was nothing left to cancel).
        """
        cancelled: List[str] = []
        for pid in self.tracker.non_terminal():
            if not self.tracker.fail(pid, reason):
                continue
            cancelled.append(pid)
            token = self._tokens.get(pid)
            if token is not None:
                token.cancel(reason)
            task = self._tasks.get(pid)
            if task is not None and not task.done():
                task.cancel()
        if cancelled:
            log_event(self._logger, "orchestrator.cancel_all", providers=cancelled, reason=reason)
        return cancelled

    # ------------------------------------------------------------- internals

    @staticmethod
    def _validate(provider_ids: Iterable[str], request: CompletionRequest) -> List[str]:
        if isinstance(provider_ids, str):
            provider_ids = [provider_ids]
        ids = list(dict.fromkeys(provider_ids or ()))
        if not ids:
            raise OrchestrationValidationError("at least one provider id is required")
        if not isinstance(request.prompt, str) or not request.prompt.strip():
            raise OrchestrationValidationError("prompt must not be empty")
        return ids

    async def _run_provider(
        self,
        pid: str,
        adapter: ProviderAdapter,
        model: str,
        request: CompletionRequest,
        deadline: float,
        request_id: str,
        prompt_id: Optional[str],
    ) -> CompletionResponse:
        ctx = LogContext(provider=pid, model=model, request_id=request_id)
        t0 = self._started.get(pid, time.perf_counter())
        token = self._tokens[pid]
        normalized_log_event(self._logger, "provider.start", ctx, phase="start", emitted=None, tokens=None)
        try:
            response = await asyncio.wait_for(
                self._execute(pid, adapter, model, request, token, t0), timeout=deadline
            )
        except asyncio.TimeoutError:
            token.cancel("timeout")
            response = CompletionResponse.failure(
                model, f"{ErrorCode.TIMEOUT.value}: {pid} exceeded {deadline:g}s deadline", _elapsed_ms(t0)
            )
            normalized_log_event(
                self._logger,
                "provider.timeout",
                ctx,
                phase="finalize",
                error_code=ErrorCode.TIMEOUT.value,
                emitted=None,
                tokens=None,
                level=logging.WARNING,
                deadline_seconds=deadline,
            )
        except Exception as exc:  # adapter broke its no-raise contract
            response = CompletionResponse.failure(model, error_text(exc), _elapsed_ms(t0))
            normalized_log_event(
                self._logger,
                "provider.error",
                ctx,
                phase="finalize",
                error_code=classify_code(exc),
                emitted=None,
                tokens=None,
                level=logging.WARNING,
                error=response.error,
            )
        response = self._finalize(pid, model, response)
        normalized_log_event(
            self._logger,
            "provider.end",
            ctx,
            phase="finalize",
            emitted=bool(response.text),
            tokens=response.tokens_used,
            status="success" if response.ok else "error",
            latency_ms=response.execution_time_ms,
            error=response.error,
        )
        await self._persist(pid, response, request_id, prompt_id)
        return response

    async def _execute(
        self,
        pid: str,
        adapter: ProviderAdapter,
        model: str,
        request: CompletionRequest,
        token: CancellationToken,
        t0: float,
    ) -> CompletionResponse:
        if not self.tracker.transition(pid, RequestStatus.LOADING):
            # cancelled before the task got to run
            return self._response_from_state(pid, model, _elapsed_ms(t0))
        if not (adapter.info.supports_streaming and request.options.streaming_enabled):
            return await adapter.generate_completion(request, token)

        self.tracker.transition(pid, RequestStatus.STREAMING)
        channel = ChunkChannel(self._channel_size)
        producer = asyncio.create_task(channel.pump(adapter.stream_completion(request, token)))
        parts: List[str] = []
        length = 0
        metrics = StreamMetrics()
        terminal: Optional[StreamingChunk] = None
        try:
            async for chunk in channel:
                metrics.record(chunk)
                self._notify_chunk(pid, chunk)
                if chunk.is_complete:
                    terminal = chunk
                    break
                if chunk.text:
                    parts.append(chunk.text)
                    length += len(chunk.text)
                self.tracker.update_progress(pid, streaming_progress(length))
        finally:
            if not producer.done():
                producer.cancel()
            await asyncio.gather(producer, return_exceptions=True)
        metrics.finish()
        log_event(
            self._logger,
            "stream.end",
            LogContext(provider=pid, model=model),
            metrics=metrics.to_dict(),
        )

        if terminal is None and channel.error is not None:
            raise channel.error
        if terminal is not None and terminal.error:
            return CompletionResponse.failure(model, terminal.error, _elapsed_ms(t0))
        if terminal is not None and terminal.text:
            parts.append(terminal.text)
        tokens = terminal.tokens_used if terminal is not None else metrics.tokens_used
        return CompletionResponse(
            text="".join(parts), model_id=model, execution_time_ms=_elapsed_ms(t0), tokens_used=tokens
        )

    def _finalize(self, pid: str, model: str, response: CompletionResponse) -> CompletionResponse:
        """Record the terminal state; a slot already terminal (cancelled) wins."""
        recorded = self.tracker.succeed(pid, response) if response.ok else self.tracker.fail(pid, response.error or "")
        if recorded:
            return response
        return self._response_from_state(pid, model, response.execution_time_ms)

    def _response_from_state(self, pid: str, model: str, elapsed_ms: int) -> CompletionResponse:
        state = self.tracker.get(pid)
        if state is not None and state.status is RequestStatus.SUCCESS and state.response is not None:
            return state.response
        message = state.error if state is not None and state.error else CANCELLED_REASON
        return CompletionResponse.failure(model, message, elapsed_ms)

    async def _settle_abandoned(
        self,
        pid: str,
        model: str,
        outcome: BaseException,
        request_id: str,
        prompt_id: Optional[str],
    ) -> CompletionResponse:
        """Build the response for a task that ended by exception (usually ``cancel_all``)."""
        elapsed = _elapsed_ms(self._started.get(pid, time.perf_counter()))
        if not isinstance(outcome, asyncio.CancelledError):
            self.tracker.fail(pid, error_text(outcome))
        else:
            self.tracker.fail(pid, CANCELLED_REASON)
        response = self._response_from_state(pid, model, elapsed)
        normalized_log_event(
            self._logger,
            "provider.cancelled" if isinstance(outcome, asyncio.CancelledError) else "provider.error",
            LogContext(provider=pid, model=model, request_id=request_id),
            phase="finalize",
            error_code=classify_code(outcome),
            emitted=None,
            tokens=None,
            error=response.error,
        )
        await self._persist(pid, response, request_id, prompt_id)
        return response

    def _notify_chunk(self, pid: str, chunk: StreamingChunk) -> None:
        for listener in list(self._chunk_listeners):
            try:
                listener(pid, chunk)
            except Exception as exc:  # observers must not break the stream
                log_event(
                    self._logger,
                    "state.listener_error",
                    level=logging.WARNING,
                    provider=pid,
                    kind="chunk",
                    error=repr(exc),
                )

    def _metadata(self, pid: str, request_id: str, prompt_id: Optional[str]) -> Dict[str, Any]:
        user_id = self._session.current_user_id() if self._session is not None else None
        return {
            "provider_id": pid,
            "request_id": request_id,
            "prompt_id": prompt_id,
            "user_id": user_id,
        }

    async def _save_prompt(
        self, request: CompletionRequest, ids: List[str], request_id: str
    ) -> Optional[str]:
        if self._store is None:
            return None
        metadata = self._metadata("", request_id, None)
        metadata.pop("provider_id")
        metadata["provider_ids"] = ids
        try:
            return await asyncio.to_thread(self._store.save_prompt, request, metadata)
        except Exception as exc:  # best-effort persistence
            normalized_log_event(
                self._logger,
                "persistence.error",
                None,
                phase="save_prompt",
                error_code=ErrorCode.PERSISTENCE.value,
                emitted=None,
                tokens=None,
                level=logging.WARNING,
                request_id=request_id,
                error=repr(exc),
            )
            return None

    async def _persist(
        self, pid: str, response: CompletionResponse, request_id: str, prompt_id: Optional[str]
    ) -> None:
        if self._store is None or pid in self._persisted:
            return
        self._persisted.add(pid)
        try:
            await asyncio.to_thread(self._store.save, response, self._metadata(pid, request_id, prompt_id))
        except Exception as exc:  # best-effort persistence
            normalized_log_event(
                self._logger,
                "persistence.error",
                LogContext(provider=pid, model=response.model_id, request_id=request_id),
                phase="save_response",
                error_code=ErrorCode.PERSISTENCE.value,
                emitted=None,
                tokens=None,
                level=logging.WARNING,
                error=repr(exc),
            )


__all__ = ["CompletionOrchestrator", "ChunkListener"]
