"""fanout_providers package

Send one prompt to several AI completion providers at once.

Purpose:
    Provide a small, stable API for external consumption (packaging is
    configured via the repository root ``pyproject.toml``): a provider
    registry, the fan-out orchestrator, and the shared request/response
    models. The HTTP service and CLI live under ``fanout_providers.service``.

Public API (re-exported):
    - Version: ``__version__``
    - Exceptions: :class:`ProviderError`, :class:`ErrorCode`
    - Registry: :class:`ProviderRegistry`, :func:`create`
    - Orchestration: :class:`CompletionOrchestrator`
    - Models: :class:`CompletionRequest`, :class:`CompletionResponse`,
      :class:`GenerationOptions`, :class:`Attachment`
"""

from .base.errors import ErrorCode, ProviderError
from .base.interfaces import ProviderAdapter
from .base.models import Attachment, CompletionRequest, CompletionResponse, GenerationOptions
from .base.registry import ProviderRegistry, create_adapter
from .orchestration import CompletionOrchestrator

__version__ = "0.1.0"


def create(provider: str, **overrides) -> ProviderAdapter:
    """Create a single adapter by canonical provider id.

    Keyword arguments override configuration values (``api_key``,
    ``base_url``, ``model``).
    """
    return create_adapter(provider, overrides=overrides or None)


__all__ = [
    "__version__",
    "ProviderError",
    "ErrorCode",
    "ProviderRegistry",
    "create",
    "CompletionOrchestrator",
    "CompletionRequest",
    "CompletionResponse",
    "GenerationOptions",
    "Attachment",
]
