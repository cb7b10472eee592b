"""Incremental UTF-8 decoding and line reassembly for streamed bodies.

Transport reads split arbitrarily: inside a line, inside a CRLF pair, or
inside a multibyte character. ``LineBuffer`` holds the unfinished remainder
until the next read (or :meth:`flush`) so callers only ever see whole lines.
"""
from __future__ import annotations

import codecs
from typing import List, Union


class LineBuffer:
    """Accumulate bytes or text and return complete lines without terminators."""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    def feed(self, data: Union[bytes, bytearray, str]) -> List[str]:
        """Add one transport read and return the lines it completed."""
        if isinstance(data, (bytes, bytearray)):
            text = self._decoder.decode(bytes(data))
        else:
            text = data
        if not text:
            return []
        self._pending += text
        *lines, self._pending = self._pending.split("\n")
        return [line.rstrip("\r") for line in lines]

    def flush(self) -> List[str]:
        """Return the unterminated remainder (if any) and reset."""
        text = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        text = text.rstrip("\r")
        return [text] if text else []

    @property
    def pending(self) -> str:
        return self._pending


__all__ = ["LineBuffer"]
