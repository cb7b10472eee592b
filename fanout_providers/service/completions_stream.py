"""
NDJSON streaming route for fan-out completions.

Purpose
-------
Expose ``POST /api/completions/stream``. The body is the same
``CompletionRequestDTO`` accepted by ``/api/completions``; the response is a
stream of newline-delimited JSON events while the fan-out runs:

- ``{"type": "status", "providerId", "status", "error"?}``
- ``{"type": "progress", "providerId", "progress"}``
- ``{"type": "chunk", "providerId", "text"}``
- one final ``{"type": "result", "perProvider": {...}}``

Validation and unknown providers are rejected with HTTP 400 before the
stream starts. When the client disconnects the generator is closed, which
cancels every provider still running.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator, Dict, List

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from fanout_providers.base.dto import CompletionRequestDTO
from fanout_providers.base.errors import describe_exception
from fanout_providers.base.models import CompletionRequest, RequestState, StreamingChunk
from fanout_providers.orchestration import CompletionOrchestrator
from fanout_providers.service.app_parts.app_core import (
    get_orchestrator,
    per_provider_payload,
    prepare_request,
)

router = APIRouter()

_DONE = object()


def _line(event: Dict[str, Any]) -> bytes:
    return (json.dumps(event, ensure_ascii=False) + "\n").encode("utf-8")


async def stream_events(
    orchestrator: CompletionOrchestrator, ids: List[str], request: CompletionRequest
) -> AsyncIterator[bytes]:
    """Run the fan-out and yield NDJSON event lines as it progresses."""
    queue: "asyncio.Queue[Any]" = asyncio.Queue()

    def on_status(pid: str, state: RequestState) -> None:
        event: Dict[str, Any] = {"type": "status", "providerId": pid, "status": state.status.value}
        if state.error:
            event["error"] = state.error
        queue.put_nowait(event)

    def on_progress(pid: str, value: int) -> None:
        queue.put_nowait({"type": "progress", "providerId": pid, "progress": value})

    def on_chunk(pid: str, chunk: StreamingChunk) -> None:
        if chunk.text:
            queue.put_nowait({"type": "chunk", "providerId": pid, "text": chunk.text})

    unsubscribers = [
        orchestrator.tracker.subscribe_status(on_status),
        orchestrator.tracker.subscribe_progress(on_progress),
        orchestrator.subscribe_chunks(on_chunk),
    ]
    task = asyncio.create_task(orchestrator.send_to_multiple_services(ids, request))
    task.add_done_callback(lambda _: queue.put_nowait(_DONE))
    try:
        while True:
            item = await queue.get()
            if item is _DONE:
                break
            yield _line(item)
        if task.exception() is not None:
            yield _line({"type": "error", "error": describe_exception(task.exception())})
            return
        yield _line({"type": "result", "perProvider": per_provider_payload(task.result())})
    finally:
        if not task.done():
            orchestrator.cancel_all()
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        for unsubscribe in unsubscribers:
            unsubscribe()


@router.post("/api/completions/stream")
async def post_completions_stream(
    body: CompletionRequestDTO,
    orchestrator: CompletionOrchestrator = Depends(get_orchestrator),
) -> StreamingResponse:
    """Stream per-provider status, progress, and chunks, then the result map."""
    ids, request = prepare_request(body, orchestrator)
    return StreamingResponse(
        stream_events(orchestrator, ids, request), media_type="application/x-ndjson"
    )


__all__ = ["router", "stream_events"]
