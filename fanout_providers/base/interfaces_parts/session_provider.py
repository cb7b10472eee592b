"""SessionProvider Protocol and a static implementation.

The session collaborator answers two questions: who is the current user
(recorded with persisted prompts) and whether a provider category should be
reached through a server-side proxy instead of directly with a key.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol, runtime_checkable


@runtime_checkable
class SessionProvider(Protocol):
    def current_user_id(self) -> Optional[str]:  # pragma: no cover - interface
        ...

    def proxy_endpoint(self, category: str) -> Optional[str]:  # pragma: no cover - interface
        """Return the proxy base URL for ``category`` or ``None`` for direct calls."""
        ...


@dataclass
class StaticSessionProvider:
    """Fixed user id and proxy map, used by the service, the CLI, and tests."""

    user_id: Optional[str] = None
    proxies: Dict[str, str] = field(default_factory=dict)

    def current_user_id(self) -> Optional[str]:
        return self.user_id

    def proxy_endpoint(self, category: str) -> Optional[str]:
        return self.proxies.get(category)


__all__ = ["SessionProvider", "StaticSessionProvider"]
