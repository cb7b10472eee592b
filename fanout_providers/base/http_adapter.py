"""Shared base class for HTTP provider adapters.

Purpose
-------
``HTTPProviderAdapter`` implements the whole :class:`ProviderAdapter` contract
once (model selection, credential gating, request/response plumbing,
streaming through a wire-format normalizer, credential probes, attachment
handling, structured logging). Concrete adapters only describe their wire
format through a handful of hooks:

- ``auth_headers(secret)``
- ``completion_url(model, stream)``
- ``build_payload(request, model, stream, prompt, images)``
- ``parse_completion(data)``
- ``normalizer_cls``
- ``credential_probe(secret)`` / ``credential_probe_result(status)``

Failure semantics
-----------------
- ``generate_completion`` returns ``CompletionResponse(text="", error=...)``
  instead of raising.
- ``stream_completion`` reports failure as a single terminal chunk with
  ``error`` set. The HTTP response is released on every exit path, including
  an early ``aclose()`` by the consumer.
- ``validate_credential`` returns ``False`` on any failure to build or send
  the probe, an unencodable secret included.
- ``asyncio.CancelledError`` is never intercepted; task cancellation
  propagates to the orchestrator.
"""
from __future__ import annotations

import inspect
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple, Type

import httpx

from ..config.defaults import CANCELLED_REASON
from .cancellation import CancellationToken, CancelledError
from .errors import (
    ErrorCode,
    ProviderError,
    classify_exception,
    code_for_status,
    credential_error,
    describe_exception,
)
from .http.client import create_async_client
from .interfaces import ChunkCallback
from .logging import LogContext, get_logger, normalized_log_event
from .models import Attachment, CompletionRequest, CompletionResponse, ProviderInfo, StreamingChunk
from .streaming.normalizers import SSEDoneNormalizer, StreamNormalizer


def _elapsed_ms(t0: float) -> int:
    return int(round((time.perf_counter() - t0) * 1000))


def extract_error_message(resp: httpx.Response, label: str) -> str:
    """Pull a human-readable message out of a non-2xx response body.

    Order: ``error.message``, then ``message``, then a string ``error``, then
    ``"<label> API error: Status <n>"``.
    """
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, list) and data:
        data = data[0]
    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict) and isinstance(err.get("message"), str) and err["message"]:
            return err["message"]
        if isinstance(data.get("message"), str) and data["message"]:
            return data["message"]
        if isinstance(err, str) and err:
            return err
    return f"{label} API error: Status {resp.status_code}"


def error_text(exc: BaseException) -> str:
    """Return the error string placed on responses and terminal chunks."""
    if isinstance(exc, CancelledError):
        return str(exc) or CANCELLED_REASON
    return describe_exception(exc)


class HTTPProviderAdapter:
    """Base adapter for providers reached over HTTP with ``httpx``."""

    provider_id: str = ""
    display_name: str = ""
    models: Tuple[str, ...] = ()
    default_model: str = ""
    default_base_url: str = ""
    supports_attachments: bool = True
    supports_streaming: bool = True
    normalizer_cls: Type[StreamNormalizer] = SSEDoneNormalizer

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        proxied: bool = False,
        category: Optional[str] = None,
        reuse_connections: bool = False,
        **_: Any,
    ) -> None:
        self._api_key = api_key or None
        self._base_url = (base_url or self.default_base_url).rstrip("/")
        self._proxied = proxied
        self._category = category or self.provider_id
        self._model = model if model in self.models else self.default_model
        self._client = http_client
        self._owns_client = False
        self._reuse_connections = reuse_connections
        self._logger = get_logger(self.provider_id or __name__)

    # ------------------------------------------------------------------ info

    @property
    def info(self) -> ProviderInfo:
        return ProviderInfo(
            id=self.provider_id,
            display_name=self.display_name,
            models=tuple(self.models),
            default_model=self._model,
            supports_attachments=self.supports_attachments,
            supports_streaming=self.supports_streaming,
            category=self._category,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def has_credential(self) -> bool:
        """True when calls can be authorized (own key or server-side proxy)."""
        return bool(self._api_key) or self._proxied

    def select_model(self, request: CompletionRequest) -> str:
        """Preferred model when the catalog contains it, else the adapter default."""
        preferred = request.options.preferred_model_id
        return preferred if preferred and preferred in self.models else self._model

    # ----------------------------------------------------------------- hooks

    def auth_headers(self, secret: Optional[str]) -> Dict[str, str]:  # pragma: no cover - abstract
        raise NotImplementedError

    def completion_url(self, model: str, stream: bool) -> str:  # pragma: no cover - abstract
        raise NotImplementedError

    def build_payload(
        self,
        request: CompletionRequest,
        model: str,
        stream: bool,
        prompt: str,
        images: List[Attachment],
    ) -> Dict[str, Any]:  # pragma: no cover - abstract
        raise NotImplementedError

    def parse_completion(self, data: Any) -> Tuple[str, Optional[int]]:  # pragma: no cover - abstract
        raise NotImplementedError

    def credential_probe(self, secret: str) -> Tuple[str, str, Dict[str, Any]]:  # pragma: no cover - abstract
        """Return ``(method, url, request_kwargs)`` for a minimal read-only call."""
        raise NotImplementedError

    def credential_probe_result(self, status: int) -> bool:
        return 200 <= status < 300

    def default_headers(self) -> Dict[str, str]:
        """Headers sent on every call regardless of credential (API versions)."""
        return {}

    def new_normalizer(self, ctx: LogContext) -> StreamNormalizer:
        return self.normalizer_cls(logger=self._logger, ctx=ctx)

    # -------------------------------------------------------------- plumbing

    @asynccontextmanager
    async def _client_scope(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        if self._reuse_connections:
            self._client = create_async_client()
            self._owns_client = True
            yield self._client
            return
        async with create_async_client() as client:
            yield client

    async def aclose(self) -> None:
        """Close the HTTP client if this adapter created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
            self._owns_client = False

    def _require_credential(self, model: str) -> None:
        if not self.has_credential:
            raise credential_error(self.provider_id, model)

    def _request_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", **self.default_headers()}
        if self._api_key:
            headers.update(self.auth_headers(self._api_key))
        return headers

    def upstream_headers(self) -> Dict[str, str]:
        """Headers for a raw call made on this adapter's behalf (server-side proxy)."""
        self._require_credential(self._model)
        return self._request_headers()

    def _status_error(self, resp: httpx.Response, model: str) -> ProviderError:
        return ProviderError(
            code=code_for_status(resp.status_code),
            message=extract_error_message(resp, self.display_name),
            provider=self.provider_id,
            model=model,
            status=resp.status_code,
        )

    def _prepare_content(self, request: CompletionRequest, ctx: LogContext) -> Tuple[str, List[Attachment]]:
        """Fold text attachments into the prompt and collect native image parts.

        Images are dropped (and logged) when the adapter does not support
        attachments; other media types are always dropped.
        """
        prompt = request.prompt
        images: List[Attachment] = []
        skipped: List[str] = []
        for att in request.attachments:
            if att.is_text:
                label = att.name or "attachment"
                prompt = f"{prompt}\n\n[{label}]\n{att.as_text()}"
            elif att.is_image and self.supports_attachments:
                images.append(att)
            else:
                skipped.append(att.media_type)
        if skipped:
            normalized_log_event(
                self._logger,
                "attachments.skipped",
                ctx,
                phase="prepare",
                emitted=None,
                tokens=None,
                media_types=skipped,
                supports_attachments=self.supports_attachments,
            )
        return prompt, images

    # ------------------------------------------------------------ operations

    async def generate_completion(
        self, request: CompletionRequest, token: Optional[CancellationToken] = None
    ) -> CompletionResponse:
        """Single-shot completion; failures are returned, never raised."""
        model = self.select_model(request)
        ctx = LogContext(provider=self.provider_id, model=model)
        t0 = time.perf_counter()
        normalized_log_event(self._logger, "completion.start", ctx, phase="start", emitted=None, tokens=None)
        try:
            self._require_credential(model)
            if token is not None:
                token.raise_if_cancelled()
            prompt, images = self._prepare_content(request, ctx)
            payload = self.build_payload(request, model, False, prompt, images)
            async with self._client_scope() as client:
                resp = await client.post(
                    self.completion_url(model, False), json=payload, headers=self._request_headers()
                )
            if not resp.is_success:
                raise self._status_error(resp, model)
            try:
                body = resp.json()
            except ValueError as exc:
                raise ProviderError(
                    code=ErrorCode.PROTOCOL,
                    message="response body is not JSON",
                    provider=self.provider_id,
                    model=model,
                    raw=exc,
                ) from exc
            text, tokens = self.parse_completion(body)
        except Exception as exc:  # converted into an error response
            message = error_text(exc)
            normalized_log_event(
                self._logger,
                "completion.error",
                ctx,
                phase="finalize",
                error_code=classify_code(exc),
                emitted=False,
                tokens=None,
                error=message,
            )
            return CompletionResponse.failure(model, message, _elapsed_ms(t0))
        response = CompletionResponse(
            text=text, model_id=model, execution_time_ms=_elapsed_ms(t0), tokens_used=tokens
        )
        normalized_log_event(
            self._logger,
            "completion.end",
            ctx,
            phase="finalize",
            emitted=bool(text),
            tokens=tokens,
            latency_ms=response.execution_time_ms,
        )
        return response

    async def stream_completion(
        self, request: CompletionRequest, token: Optional[CancellationToken] = None
    ) -> AsyncIterator[StreamingChunk]:
        """Yield partial chunks then exactly one terminal chunk."""
        model = self.select_model(request)
        ctx = LogContext(provider=self.provider_id, model=model)
        normalizer = self.new_normalizer(ctx)
        normalized_log_event(self._logger, "stream.start", ctx, phase="start", emitted=None, tokens=None)
        try:
            self._require_credential(model)
            if token is not None:
                token.raise_if_cancelled()
            prompt, images = self._prepare_content(request, ctx)
            payload = self.build_payload(request, model, True, prompt, images)
            async with self._client_scope() as client:
                async with client.stream(
                    "POST",
                    self.completion_url(model, True),
                    json=payload,
                    headers=self._request_headers(),
                ) as resp:
                    if not resp.is_success:
                        await resp.aread()
                        raise self._status_error(resp, model)
                    async for data in resp.aiter_bytes():
                        if token is not None:
                            token.raise_if_cancelled()
                        for chunk in normalizer.feed(data):
                            yield chunk
                        if normalizer.finished:
                            break
            for chunk in normalizer.close():
                yield chunk
        except Exception as exc:  # reported as the terminal chunk
            message = error_text(exc)
            normalized_log_event(
                self._logger,
                "stream.error",
                ctx,
                phase="mid_stream",
                error_code=classify_code(exc),
                emitted=None,
                tokens=None,
                error=message,
            )
            for chunk in normalizer.fail(message):
                yield chunk

    async def generate_streaming_completion(
        self,
        request: CompletionRequest,
        on_chunk: ChunkCallback,
        token: Optional[CancellationToken] = None,
    ) -> None:
        """Callback form of :meth:`stream_completion`; returns after the terminal chunk."""
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
        """Probe the provider with ``secret``; never raises."""
        ctx = LogContext(provider=self.provider_id)
        if not secret or not secret.strip():
            return False
        try:
            method, url, kwargs = self.credential_probe(secret.strip())
            async with self._client_scope() as client:
                resp = await client.request(method, url, **kwargs)
        except Exception as exc:  # any probe failure means the key is unusable
            normalized_log_event(
                self._logger,
                "credential.validate",
                ctx,
                phase="validate",
                error_code=classify_code(exc),
                emitted=None,
                tokens=None,
                valid=False,
                error=str(exc),
            )
            return False
        valid = self.credential_probe_result(resp.status_code)
        normalized_log_event(
            self._logger,
            "credential.validate",
            ctx,
            phase="validate",
            emitted=None,
            tokens=None,
            valid=valid,
            status=resp.status_code,
        )
        return valid


def classify_code(exc: BaseException) -> str:
    """Return the error code value for logging."""
    return classify_exception(exc).value


__all__ = [
    "HTTPProviderAdapter",
    "extract_error_message",
    "error_text",
    "classify_code",
]
