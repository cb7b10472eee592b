"""Progress heuristic for streamed completions.

Providers do not report expected output length, so progress grows with the
aggregated text length and is capped below 100 until the terminal chunk.
"""
from __future__ import annotations

from ...config.defaults import PROGRESS_EXPECTED_CHARS, PROGRESS_STREAMING_CAP


def streaming_progress(text_length: int, is_complete: bool = False) -> int:
    """Return ``min(95, len/500*100)`` while streaming and ``100`` on completion."""
    if is_complete:
        return 100
    if text_length <= 0:
        return 0
    return int(min(PROGRESS_STREAMING_CAP, text_length / PROGRESS_EXPECTED_CHARS * 100))


__all__ = ["streaming_progress"]
