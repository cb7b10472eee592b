from __future__ import annotations

from fanout_providers.base.models import StreamingChunk
from fanout_providers.base.streaming import StreamMetrics, streaming_progress


def test_progress_grows_with_length_and_caps_below_completion():
    assert streaming_progress(0) == 0
    assert streaming_progress(50) == 10
    assert streaming_progress(250) == 50
    assert streaming_progress(10_000) == 95
    assert streaming_progress(3, is_complete=True) == 100


def test_metrics_count_text_chunks_and_take_terminal_tokens():
    metrics = StreamMetrics()
    metrics.record(StreamingChunk(text="Hel"))
    metrics.record(StreamingChunk(text="lo"))
    metrics.record(StreamingChunk.terminal(tokens_used=7))

    data = metrics.to_dict()
    assert data["emitted"] == 2 and data["characters"] == 5
    assert metrics.tokens_used == 7
    assert data["time_to_first_token_ms"] is not None
    assert data["total_duration_ms"] >= data["time_to_first_token_ms"]


def test_metrics_without_text_leave_first_token_unset():
    metrics = StreamMetrics()
    metrics.record(StreamingChunk.terminal(error="server_error: boom"))
    assert metrics.time_to_first_token_ms is None
    assert metrics.total_duration_ms is not None
