"""
CompletionRequest: the single prompt fanned out to every selected provider.

The request is frozen once constructed; the orchestrator hands the same
instance to all provider tasks.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from .attachment import Attachment
from .generation_options import GenerationOptions


@dataclass(frozen=True)
class CompletionRequest:
    """Normalized completion request sent to provider adapters.

    Attributes:
        prompt: User prompt text; must be non-blank when dispatched.
        attachments: Ordered attachments; adapters encode what they support.
        options: Generation options shared by all providers.
    """

    prompt: str
    attachments: Tuple[Attachment, ...] = ()
    options: GenerationOptions = field(default_factory=GenerationOptions)

    def __post_init__(self) -> None:
        if isinstance(self.attachments, list):
            object.__setattr__(self, "attachments", tuple(self.attachments))

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable summary (attachment bytes are not included)."""
        return {
            "prompt": self.prompt,
            "attachments": [
                {"media_type": a.media_type, "name": a.name, "size": len(a.data)}
                for a in self.attachments
            ],
            "options": {
                "max_tokens": self.options.max_tokens,
                "temperature": self.options.temperature,
                "top_p": self.options.top_p,
                "presence_penalty": self.options.presence_penalty,
                "frequency_penalty": self.options.frequency_penalty,
                "stop_sequences": list(self.options.stop_sequences),
                "preferred_model_id": self.options.preferred_model_id,
                "streaming_enabled": self.options.streaming_enabled,
            },
        }


__all__ = ["CompletionRequest"]
