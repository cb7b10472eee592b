"""
Structured provider error exception type.

Wraps transport and provider failures with a normalized `ErrorCode` so the
orchestrator can turn them into per-provider error responses without losing
the classification.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .error_code import ErrorCode


@dataclass
class ProviderError(Exception):
    """Represents a structured provider error with a normalized error code.

    Attributes:
        code: Normalized :class:`ErrorCode` classification for the failure.
        message: Human-readable error message suitable for logging.
        provider: Provider id where the error originated (e.g., ``"openai"``).
        model: Optional model name associated with the failure.
        status: HTTP status code when the failure came from a response.
        raw: Optional original exception for diagnostics.
    """

    code: ErrorCode
    message: str
    provider: str
    model: Optional[str] = None
    status: Optional[int] = None
    raw: Optional[Exception] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.provider}:{self.model or '-'} {self.code.value}: {self.message}"

    def to_response_error(self) -> str:
        """Return the ``"<code>: <message>"`` string carried by error responses."""
        return f"{self.code.value}: {self.message}"


def credential_error(provider: str, model: Optional[str] = None) -> ProviderError:
    """Build the error raised when neither an API key nor a proxy is configured."""
    return ProviderError(
        code=ErrorCode.AUTH,
        message=f"no credential or proxy endpoint configured for provider '{provider}'",
        provider=provider,
        model=model,
    )


__all__ = ["ProviderError", "credential_error"]
