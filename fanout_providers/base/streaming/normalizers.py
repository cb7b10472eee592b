"""Streaming protocol normalizers.

Purpose
-------
Turn the three wire formats spoken by providers into one sequence of
:class:`~fanout_providers.base.models.StreamingChunk` values: zero or more
partial chunks followed by exactly one terminal chunk.

- ``SSEDoneNormalizer``: OpenAI-style server-sent events. ``data: <json>``
  lines carry ``choices[0].delta.content``; ``data: [DONE]`` terminates.
- ``TypedEventNormalizer``: Anthropic-style typed events.
  ``content_block_delta`` carries ``delta.text``; ``message_stop`` terminates.
- ``NDJSONNormalizer``: Gemini-style newline-delimited JSON. Each object
  carries ``candidates[0].content.parts[*].text``; there is no terminator, so
  the terminal chunk is produced by :meth:`StreamNormalizer.close`.

Failure semantics
-----------------
A line that cannot be decoded is logged as ``stream.decode_error`` and
skipped; it never aborts the stream. Input arriving after the terminal chunk
is ignored. A provider ``error`` event ends the stream with a terminal chunk
whose ``error`` is set.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Iterable, List, Optional, Union

from ..errors import ErrorCode
from ..logging import LogContext, get_logger, normalized_log_event
from ..models import StreamingChunk
from .line_buffer import LineBuffer

StreamInput = Union[bytes, bytearray, str]


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _first(value: Any) -> dict:
    if isinstance(value, list) and value:
        return _as_dict(value[0])
    return {}


def _int_or_none(value: Any) -> Optional[int]:
    return value if isinstance(value, int) and not isinstance(value, bool) else None


class StreamNormalizer:
    """Base class handling buffering, terminal bookkeeping, and decode errors.

    Subclasses implement :meth:`handle_line` and call :meth:`_emit` /
    :meth:`_terminate` to produce chunks.
    """

    protocol = "base"

    def __init__(self, *, logger: Optional[logging.Logger] = None, ctx: Optional[LogContext] = None) -> None:
        self._lines = LineBuffer()
        self._logger = logger or get_logger(__name__)
        self._ctx = ctx
        self.finished = False
        self.tokens_used: Optional[int] = None
        self.decode_errors = 0

    def feed(self, data: StreamInput) -> List[StreamingChunk]:
        """Consume one transport read and return the chunks it completed."""
        if self.finished:
            return []
        out: List[StreamingChunk] = []
        for line in self._lines.feed(data):
            self._consume(line, out)
            if self.finished:
                break
        return out

    def close(self) -> List[StreamingChunk]:
        """Flush the remainder and guarantee the terminal chunk was produced."""
        if self.finished:
            return []
        out: List[StreamingChunk] = []
        for line in self._lines.flush():
            self._consume(line, out)
            if self.finished:
                return out
        self._terminate(out)
        return out

    def fail(self, error: str) -> List[StreamingChunk]:
        """Terminate with ``error`` unless a terminal chunk was already produced."""
        if self.finished:
            return []
        out: List[StreamingChunk] = []
        self._terminate(out, error=error)
        return out

    def handle_line(self, line: str, out: List[StreamingChunk]) -> None:  # pragma: no cover - abstract
        raise NotImplementedError

    def _consume(self, line: str, out: List[StreamingChunk]) -> None:
        line = line.strip()
        if not line:
            return
        try:
            self.handle_line(line, out)
        except (ValueError, TypeError, AttributeError) as exc:
            self.decode_errors += 1
            normalized_log_event(
                self._logger,
                "stream.decode_error",
                self._ctx,
                phase="mid_stream",
                error_code=ErrorCode.PROTOCOL.value,
                emitted=None,
                tokens=None,
                level=logging.WARNING,
                protocol=self.protocol,
                error=str(exc),
                line=line[:200],
            )

    def _emit(self, out: List[StreamingChunk], text: Optional[str]) -> None:
        if isinstance(text, str) and text:
            out.append(StreamingChunk(text=text, is_complete=False))

    def _terminate(self, out: List[StreamingChunk], error: Optional[str] = None) -> None:
        self.finished = True
        out.append(StreamingChunk.terminal(error=error, tokens_used=self.tokens_used))


class SSEDoneNormalizer(StreamNormalizer):
    """OpenAI-style SSE with a literal ``[DONE]`` sentinel."""

    protocol = "sse"

    def handle_line(self, line: str, out: List[StreamingChunk]) -> None:
        if line.startswith(":") or line.split(":", 1)[0] in ("event", "id", "retry"):
            return
        if not line.startswith("data:"):
            raise ValueError("expected SSE data line")
        payload = line[len("data:"):].strip()
        if payload == "[DONE]":
            self._terminate(out)
            return
        obj = _as_dict(json.loads(payload))
        err = obj.get("error")
        if err:
            message = _as_dict(err).get("message") or str(err)
            self._terminate(out, error=f"{ErrorCode.SERVER_ERROR.value}: {message}")
            return
        total = _int_or_none(_as_dict(obj.get("usage")).get("total_tokens"))
        if total is not None:
            self.tokens_used = total
        delta = _as_dict(_first(obj.get("choices")).get("delta"))
        self._emit(out, delta.get("content"))


class TypedEventNormalizer(StreamNormalizer):
    """Anthropic-style typed events; the ``type`` field of each data payload drives parsing."""

    protocol = "typed_events"

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._input_tokens: Optional[int] = None
        self._output_tokens: Optional[int] = None

    def handle_line(self, line: str, out: List[StreamingChunk]) -> None:
        if line.startswith(":") or line.startswith("event:"):
            return
        if not line.startswith("data:"):
            raise ValueError("expected SSE data line")
        obj = _as_dict(json.loads(line[len("data:"):].strip()))
        kind = obj.get("type")
        if kind == "content_block_delta":
            self._emit(out, _as_dict(obj.get("delta")).get("text"))
        elif kind == "message_start":
            self._record_usage(_as_dict(_as_dict(obj.get("message")).get("usage")))
        elif kind == "message_delta":
            self._record_usage(_as_dict(obj.get("usage")))
        elif kind == "message_stop":
            self._terminate(out)
        elif kind == "error":
            err = _as_dict(obj.get("error"))
            message = err.get("message") or "stream error"
            self._terminate(out, error=f"{ErrorCode.SERVER_ERROR.value}: {message}")

    def _record_usage(self, usage: dict) -> None:
        inp = _int_or_none(usage.get("input_tokens"))
        outp = _int_or_none(usage.get("output_tokens"))
        if inp is not None:
            self._input_tokens = inp
        if outp is not None:
            self._output_tokens = outp
        if self._input_tokens is not None or self._output_tokens is not None:
            self.tokens_used = (self._input_tokens or 0) + (self._output_tokens or 0)


class NDJSONNormalizer(StreamNormalizer):
    """Gemini-style newline-delimited JSON objects, terminated by transport close.

    Compact JSON-array framing (``[``, ``,`` and ``]`` around each object) is
    tolerated.
    """

    protocol = "ndjson"

    def handle_line(self, line: str, out: List[StreamingChunk]) -> None:
        line = line.lstrip("[,").rstrip(",]").strip()
        if not line:
            return
        obj = _as_dict(json.loads(line))
        err = obj.get("error")
        if err:
            message = _as_dict(err).get("message") or str(err)
            self._terminate(out, error=f"{ErrorCode.SERVER_ERROR.value}: {message}")
            return
        total = _int_or_none(_as_dict(obj.get("usageMetadata")).get("totalTokenCount"))
        if total is not None:
            self.tokens_used = total
        parts = _as_dict(_first(obj.get("candidates")).get("content")).get("parts")
        if isinstance(parts, list):
            texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
            self._emit(out, "".join(texts))


def normalize_stream(reads: Iterable[StreamInput], normalizer: StreamNormalizer) -> List[StreamingChunk]:
    """Run a whole sequence of transport reads through ``normalizer``."""
    out: List[StreamingChunk] = []
    for data in reads:
        out.extend(normalizer.feed(data))
        if normalizer.finished:
            break
    out.extend(normalizer.close())
    return out


__all__ = [
    "StreamNormalizer",
    "SSEDoneNormalizer",
    "TypedEventNormalizer",
    "NDJSONNormalizer",
    "normalize_stream",
]
