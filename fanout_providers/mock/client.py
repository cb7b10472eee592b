"""Deterministic mock provider for offline testing.

Purpose
-------
Provide an adapter that satisfies the ``ProviderAdapter`` contract while
avoiding any network traffic, so the orchestrator, the CLI, and the HTTP
service can be exercised end to end. Behavior is configured through
constructor arguments: the chunks to stream, a per-chunk delay, a failure
message, or an exception to raise (to exercise failure isolation against an
adapter that breaks its contract).

External dependencies
---------------------
Standard library only (``asyncio`` for delays).
"""

from __future__ import annotations

import asyncio
import inspect
import time
from typing import Any, AsyncIterator, Dict, Optional, Sequence, Tuple

from ..base.cancellation import CancellationToken, CancelledError
from ..base.interfaces import ChunkCallback
from ..base.logging import LogContext, get_logger, normalized_log_event
from ..base.models import CompletionRequest, CompletionResponse, ProviderInfo, StreamingChunk
from ..config.defaults import CANCELLED_REASON, MOCK_DEFAULT_MODEL, MOCK_MODELS


def _default_chunks(prompt: str) -> Tuple[str, ...]:
    words = f"Mock response for: {prompt}".split(" ")
    return tuple(w if i == 0 else " " + w for i, w in enumerate(words))


class MockProvider:
    """Adapter that returns canned output instead of calling a live API."""

    models = MOCK_MODELS
    default_model = MOCK_DEFAULT_MODEL

    def __init__(
        self,
        *,
        provider_id: str = "mock",
        display_name: str = "Mock",
        chunks: Optional[Sequence[str]] = None,
        delay_seconds: float = 0.0,
        fail_with: Optional[str] = None,
        raise_error: Optional[BaseException] = None,
        tokens_used: Optional[int] = None,
        supports_streaming: bool = True,
        supports_attachments: bool = True,
        model: Optional[str] = None,
        **_: Any,
    ) -> None:
        self._provider_id = provider_id
        self._display_name = display_name
        self._chunks = tuple(chunks) if chunks is not None else None
        self._delay = delay_seconds
        self._fail_with = fail_with
        self._raise_error = raise_error
        self._tokens_used = tokens_used
        self._supports_streaming = supports_streaming
        self._supports_attachments = supports_attachments
        self._model = model if model in self.models else self.default_model
        self._logger = get_logger("mock")
        self.calls = 0
        self.closed_streams = 0

    @property
    def info(self) -> ProviderInfo:
        return ProviderInfo(
            id=self._provider_id,
            display_name=self._display_name,
            models=tuple(self.models),
            default_model=self._model,
            supports_attachments=self._supports_attachments,
            supports_streaming=self._supports_streaming,
            category=self._provider_id,
        )

    @property
    def has_credential(self) -> bool:
        return True

    def select_model(self, request: CompletionRequest) -> str:
        preferred = request.options.preferred_model_id
        return preferred if preferred in self.models else self._model

    def auth_headers(self, secret: Optional[str]) -> Dict[str, str]:
        return {"Authorization": f"Bearer {secret}"} if secret else {}

    def _chunks_for(self, request: CompletionRequest) -> Tuple[str, ...]:
        return self._chunks if self._chunks is not None else _default_chunks(request.prompt)

    async def generate_completion(
        self, request: CompletionRequest, token: Optional[CancellationToken] = None
    ) -> CompletionResponse:
        self.calls += 1
        model = self.select_model(request)
        t0 = time.perf_counter()
        if self._raise_error is not None:
            raise self._raise_error
        chunks = self._chunks_for(request)
        for _ in chunks:
            if token is not None and token.cancelled:
                return CompletionResponse.failure(model, token.reason or CANCELLED_REASON)
            if self._delay:
                await asyncio.sleep(self._delay)
        elapsed = int(round((time.perf_counter() - t0) * 1000))
        if self._fail_with is not None:
            return CompletionResponse.failure(model, self._fail_with, elapsed)
        return CompletionResponse(
            text="".join(chunks), model_id=model, execution_time_ms=elapsed, tokens_used=self._tokens_used
        )

    async def stream_completion(
        self, request: CompletionRequest, token: Optional[CancellationToken] = None
    ) -> AsyncIterator[StreamingChunk]:
        self.calls += 1
        ctx = LogContext(provider=self._provider_id, model=self.select_model(request))
        normalized_log_event(self._logger, "stream.start", ctx, phase="start", emitted=None, tokens=None)
        if self._raise_error is not None:
            raise self._raise_error
        try:
            for text in self._chunks_for(request):
                if self._delay:
                    await asyncio.sleep(self._delay)
                if token is not None:
                    token.raise_if_cancelled()
                yield StreamingChunk(text=text, is_complete=False)
            if self._fail_with is not None:
                yield StreamingChunk.terminal(error=self._fail_with)
                return
            yield StreamingChunk.terminal(tokens_used=self._tokens_used)
        except CancelledError as exc:
            yield StreamingChunk.terminal(error=str(exc) or CANCELLED_REASON)
        finally:
            self.closed_streams += 1

    async def generate_streaming_completion(
        self,
        request: CompletionRequest,
        on_chunk: ChunkCallback,
        token: Optional[CancellationToken] = None,
    ) -> None:
        stream = self.stream_completion(request, token)
        try:
            async for chunk in stream:
                result = on_chunk(chunk)
                if inspect.isawaitable(result):
                    await result
                if chunk.is_complete:
                    break
        finally:
            await stream.aclose()

    async def validate_credential(self, secret: str) -> bool:
        return bool(secret) and len(secret.strip()) > 20

    async def aclose(self) -> None:
        return None


__all__ = ["MockProvider"]
