"""Unified provider error taxonomy public surface.

This module re-exports the one-class-per-file implementations under
``fanout_providers.base.errors_parts`` to keep a stable import path.
"""

from .errors_parts.error_code import ErrorCode
from .errors_parts.provider_error import ProviderError, credential_error
from .errors_parts.orchestration_errors import (
    OrchestrationError,
    OrchestrationValidationError,
    PersistenceError,
    UnknownProviderError,
)
from .errors_parts.classification import (
    classify_exception,
    code_for_status,
    describe_exception,
)

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
