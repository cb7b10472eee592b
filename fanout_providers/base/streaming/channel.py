"""Bounded producer/consumer channel between an adapter stream and its consumer.

The producer side (:meth:`ChunkChannel.pump`) drains an adapter's async
iterator into a bounded ``asyncio.Queue``; the consumer iterates the channel
with ``async for``. A slow consumer applies backpressure to the producer
instead of letting chunks pile up in memory.

Lifecycle
---------
- The source is always ``aclose()``-d, whichever way pumping ends, so the
  adapter releases its HTTP response.
- Iteration stops after the terminal chunk or once the producer finished and
  the queue is drained.
- An exception raised by the source is recorded on :attr:`ChunkChannel.error`
  rather than propagated out of the producer task.
"""
from __future__ import annotations

import asyncio
from contextlib import suppress
from typing import AsyncIterator, Optional

from ...config.defaults import ORCHESTRATOR_CHANNEL_MAX_CHUNKS
from ..models import StreamingChunk

_SENTINEL = object()


class ChunkChannel:
    def __init__(self, maxsize: int = ORCHESTRATOR_CHANNEL_MAX_CHUNKS) -> None:
        self._queue: "asyncio.Queue[object]" = asyncio.Queue(maxsize=maxsize)
        self._closed = False
        self.error: Optional[Exception] = None
        self.saw_terminal = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def pump(self, source: AsyncIterator[StreamingChunk]) -> None:
        """Copy chunks from ``source`` into the channel until the terminal one."""
        try:
            async for chunk in source:
                await self._queue.put(chunk)
                if chunk.is_complete:
                    self.saw_terminal = True
                    break
        except Exception as exc:  # recorded for the consumer
            self.error = exc
        finally:
            aclose = getattr(source, "aclose", None)
            if aclose is not None:
                await aclose()
            self._closed = True
            # Consumer also stops on closed+empty, so a full queue may drop this.
            with suppress(asyncio.QueueFull):
                self._queue.put_nowait(_SENTINEL)

    def __aiter__(self) -> "ChunkChannel":
        return self

    async def __anext__(self) -> StreamingChunk:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _SENTINEL:
            raise StopAsyncIteration
        return item  # type: ignore[return-value]


__all__ = ["ChunkChannel"]
