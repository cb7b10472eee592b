"""Errors parts package public surface.

Re-exports individual error taxonomy components for optional direct imports.
Prefer importing from `fanout_providers.base.errors` for the stable surface.
"""

from .error_code import ErrorCode
from .provider_error import ProviderError, credential_error
from .orchestration_errors import (
    OrchestrationError,
    OrchestrationValidationError,
    PersistenceError,
    UnknownProviderError,
)
from .classification import classify_exception, code_for_status, describe_exception

__all__ = [
    "ErrorCode",
    "ProviderError",
    "credential_error",
    "OrchestrationError",
    "OrchestrationValidationError",
    "PersistenceError",
    "UnknownProviderError",
    "classify_exception",
    "code_for_status",
    "describe_exception",
]
