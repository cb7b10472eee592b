"""Provider registry.

Purpose
-------
Hold the id -> adapter mapping used by one orchestrator. The registry is an
explicit object built once at startup (from configuration, environment
credentials, and the session's proxy endpoints) and passed to the
orchestrator, rather than process-wide mutable state.

Adapter classes are imported lazily using ``importlib`` so importing the
registry does not import every provider module.

Failure semantics
-----------------
``resolve`` raises :class:`UnknownProviderError` for ids that were never
registered. ``create_adapter`` raises it with precise messages for unknown
providers, import failures, missing classes, and constructor errors.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type

import httpx

from ..config import get_provider_config
from .errors import UnknownProviderError
from .interfaces import ProviderAdapter, SessionProvider
from .logging import get_logger, log_event
from .models import ProviderInfo

# Map canonical provider ids to import paths and class names
_PROVIDERS: Dict[str, Dict[str, str]] = {
    "openai": {"module": "fanout_providers.openai.client", "class": "OpenAIProvider"},
    "anthropic": {"module": "fanout_providers.anthropic.client", "class": "AnthropicProvider"},
    "gemini": {"module": "fanout_providers.gemini.client", "class": "GeminiProvider"},
    "perplexity": {"module": "fanout_providers.perplexity.client", "class": "PerplexityProvider"},
    "deepseek": {"module": "fanout_providers.deepseek.client", "class": "DeepSeekProvider"},
    "mock": {"module": "fanout_providers.mock.client", "class": "MockProvider"},
}

_logger = get_logger(__name__)


def supported() -> Tuple[str, ...]:
    """Return the built-in provider ids in deterministic order."""
    return tuple(_PROVIDERS.keys())


def _load_class(provider: str) -> Type:
    spec = _PROVIDERS.get(provider)
    if not spec:
        raise UnknownProviderError(f"Unknown provider '{provider}'")
    module_path, class_name = spec["module"], spec["class"]
    try:
        mod = import_module(module_path)
    except ImportError as exc:
        raise UnknownProviderError(
            f"Failed to import module '{module_path}' for provider '{provider}': {exc}"
        ) from exc
    try:
        return getattr(mod, class_name)
    except AttributeError as exc:
        raise UnknownProviderError(
            f"Adapter class '{class_name}' not found in '{module_path}' for provider '{provider}'"
        ) from exc


def create_adapter(
    provider: str,
    *,
    session: Optional[SessionProvider] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    overrides: Optional[Dict[str, Any]] = None,
    reuse_connections: bool = False,
) -> ProviderAdapter:
    """Create one adapter from merged configuration.

    When the session returns a proxy endpoint for the provider's category,
    the adapter is pointed at the proxy and sends no credential of its own.
    ``reuse_connections`` makes HTTP adapters keep one client across calls
    until ``aclose()``; otherwise each call opens and closes its own.
    """
    name = (provider or "").lower().strip()
    klass = _load_class(name)
    cfg = get_provider_config(name, overrides)
    kwargs: Dict[str, Any] = {
        "api_key": cfg.get("api_key"),
        "base_url": cfg.get("base_url"),
        "model": cfg.get("model"),
        "http_client": http_client,
        "reuse_connections": reuse_connections,
    }
    proxy = session.proxy_endpoint(name) if session is not None else None
    if proxy:
        kwargs.update(api_key=None, base_url=proxy, proxied=True)
    try:
        return klass(**kwargs)
    except TypeError as exc:
        raise UnknownProviderError(
            f"Invalid arguments for '{provider}' adapter constructor: {exc}"
        ) from exc


class ProviderRegistry:
    """Id -> adapter mapping shared by an orchestrator and the service layer."""

    def __init__(self, adapters: Optional[Iterable[ProviderAdapter]] = None) -> None:
        self._adapters: Dict[str, ProviderAdapter] = {}
        for adapter in adapters or ():
            self.register(adapter)

    @classmethod
    def from_config(
        cls,
        ids: Optional[Iterable[str]] = None,
        *,
        session: Optional[SessionProvider] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        reuse_connections: bool = False,
    ) -> "ProviderRegistry":
        """Build adapters for ``ids`` (default: every built-in provider)."""
        registry = cls()
        for name in ids if ids is not None else supported():
            registry.register(
                create_adapter(
                    name, session=session, http_client=http_client, reuse_connections=reuse_connections
                )
            )
        log_event(_logger, "registry.built", providers=registry.ids())
        return registry

    def register(self, adapter: ProviderAdapter, provider_id: Optional[str] = None) -> None:
        """Add or replace an adapter under ``provider_id`` (default ``adapter.info.id``)."""
        self._adapters[provider_id or adapter.info.id] = adapter

    def resolve(self, provider_id: str) -> ProviderAdapter:
        try:
            return self._adapters[provider_id]
        except KeyError:
            raise UnknownProviderError(f"Unknown provider '{provider_id}'") from None

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._adapters

    def ids(self) -> List[str]:
        return list(self._adapters)

    def infos(self) -> List[ProviderInfo]:
        return [a.info for a in self._adapters.values()]

    def available(self) -> List[str]:
        """Ids whose adapters hold a credential (own key or proxy)."""
        return [pid for pid, a in self._adapters.items() if getattr(a, "has_credential", False)]

    async def aclose(self) -> None:
        for adapter in self._adapters.values():
            await adapter.aclose()


__all__ = ["ProviderRegistry", "create_adapter", "supported"]
