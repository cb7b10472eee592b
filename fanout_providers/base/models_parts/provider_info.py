"""
ProviderInfo: capability record exposed by every adapter.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class ProviderInfo:
    """Static description of a provider adapter.

    Attributes:
        id: Stable provider id used in requests (``"openai"``).
        display_name: Human-readable name.
        models: Ordered catalog of model ids the adapter accepts.
        default_model: Model used when no preferred model matches.
        supports_attachments: Whether binary attachments are encoded natively.
        supports_streaming: Whether ``stream_completion`` talks to a real stream.
        category: Credential/proxy category key (the id for built-ins).
    """

    id: str
    display_name: str
    models: Tuple[str, ...]
    default_model: str
    supports_attachments: bool = True
    supports_streaming: bool = True
    category: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.display_name,
            "models": list(self.models),
            "defaultModel": self.default_model,
            "capabilities": {
                "attachments": self.supports_attachments,
                "streaming": self.supports_streaming,
            },
        }


__all__ = ["ProviderInfo"]
