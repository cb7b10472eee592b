"""ChunkChannel producer/consumer behavior."""
from __future__ import annotations

import asyncio
from typing import AsyncIterator, List

import pytest

from fanout_providers.base.models import StreamingChunk
from fanout_providers.base.streaming import ChunkChannel


class _Source:
    """Async iterator over fixed chunks that records ``aclose`` and can raise midway."""

    def __init__(self, chunks: List[StreamingChunk], raise_after: int | None = None) -> None:
        self._chunks = list(chunks)
        self._raise_after = raise_after
        self._i = 0
        self.closed = False

    def __aiter__(self) -> AsyncIterator[StreamingChunk]:
        return self

    async def __anext__(self) -> StreamingChunk:
        if self._raise_after is not None and self._i >= self._raise_after:
            raise ConnectionError("reset by peer")
        if self._i >= len(self._chunks):
            raise StopAsyncIteration
        chunk = self._chunks[self._i]
        self._i += 1
        await asyncio.sleep(0)
        return chunk

    async def aclose(self) -> None:
        self.closed = True


async def _drain(channel: ChunkChannel, source: _Source) -> List[StreamingChunk]:
    producer = asyncio.create_task(channel.pump(source))
    received = [chunk async for chunk in channel]
    await producer
    return received


@pytest.mark.asyncio
async def test_chunks_arrive_in_order_with_small_queue():
    chunks = [StreamingChunk(text=str(i)) for i in range(20)] + [StreamingChunk.terminal(tokens_used=3)]
    source = _Source(chunks)
    channel = ChunkChannel(maxsize=2)

    received = await _drain(channel, source)

    assert [c.text for c in received[:-1]] == [str(i) for i in range(20)]
    assert received[-1].is_complete and received[-1].tokens_used == 3
    assert channel.saw_terminal and channel.error is None
    assert source.closed and channel.closed


@pytest.mark.asyncio
async def test_source_exception_is_recorded_not_raised():
    source = _Source([StreamingChunk(text="a"), StreamingChunk(text="b")], raise_after=1)
    channel = ChunkChannel(maxsize=4)

    received = await _drain(channel, source)

    assert [c.text for c in received] == ["a"]
    assert isinstance(channel.error, ConnectionError)
    assert not channel.saw_terminal
    assert source.closed


@pytest.mark.asyncio
async def test_stops_after_terminal_without_reading_the_rest():
    source = _Source([StreamingChunk.terminal(), StreamingChunk(text="never")])
    channel = ChunkChannel()

    received = await _drain(channel, source)

    assert len(received) == 1 and received[0].is_complete
    assert source.closed
