"""
Generation options shared by every adapter.

Each adapter maps the fields it understands onto its own request body and
silently ignores the rest (for example Gemini has no presence penalty).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class GenerationOptions:
    """Sampling and model-selection options for a completion request.

    Attributes:
        max_tokens: Upper bound on generated tokens.
        temperature: Sampling temperature.
        top_p: Nucleus sampling mass.
        presence_penalty: OpenAI-style presence penalty.
        frequency_penalty: OpenAI-style frequency penalty.
        stop_sequences: Sequences that end generation.
        preferred_model_id: Model to use when the adapter's catalog contains it.
        streaming_enabled: Stream when the adapter supports it (default ``True``).
    """

    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    presence_penalty: Optional[float] = None
    frequency_penalty: Optional[float] = None
    stop_sequences: Tuple[str, ...] = ()
    preferred_model_id: Optional[str] = None
    streaming_enabled: bool = True


__all__ = ["GenerationOptions"]
