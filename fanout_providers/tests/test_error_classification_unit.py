"""Unit tests for error classification and response error strings."""
from __future__ import annotations

import asyncio

import httpx
import pytest

from fanout_providers.base.cancellation import CancelledError
from fanout_providers.base.errors import (
    ErrorCode,
    OrchestrationError,
    OrchestrationValidationError,
    PersistenceError,
    ProviderError,
    UnknownProviderError,
    classify_exception,
    code_for_status,
    credential_error,
    describe_exception,
)


class _StatusError(Exception):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"status {status_code}")
        self.status_code = status_code


def test_provider_error_passthrough_and_response_string():
    err = ProviderError(code=ErrorCode.RATE_LIMIT, message="slow down", provider="openai", status=429)
    assert classify_exception(err) is ErrorCode.RATE_LIMIT  # nosec B101
    assert err.to_response_error() == "rate_limit: slow down"  # nosec B101
    assert describe_exception(err) == "rate_limit: slow down"  # nosec B101


def test_credential_error_is_auth():
    err = credential_error("gemini", "gemini-1.5-pro")
    assert err.code is ErrorCode.AUTH  # nosec B101
    assert "gemini" in err.message  # nosec B101


@pytest.mark.parametrize(
    "exc, expected",
    [
        (CancelledError("cancelled"), ErrorCode.CANCELLED),
        (asyncio.CancelledError(), ErrorCode.CANCELLED),
        (TimeoutError("late"), ErrorCode.TIMEOUT),
        (httpx.ReadTimeout("read timed out"), ErrorCode.TIMEOUT),
        (httpx.ConnectError("refused"), ErrorCode.TRANSIENT),
        (_StatusError(401), ErrorCode.AUTH),
        (_StatusError(429), ErrorCode.RATE_LIMIT),
        (_StatusError(529), ErrorCode.UNAVAILABLE),
        (RuntimeError("model does not exist"), ErrorCode.NOT_FOUND),
        (RuntimeError("rate limit reached"), ErrorCode.RATE_LIMIT),
        (RuntimeError("kaboom"), ErrorCode.UNKNOWN),
    ],
)
def test_classify_exception_precedence(exc, expected):
    assert classify_exception(exc) is expected  # nosec B101


def test_typed_local_errors_carry_codes():
    assert classify_exception(OrchestrationValidationError("x")) is ErrorCode.VALIDATION  # nosec B101
    assert classify_exception(UnknownProviderError("x")) is ErrorCode.NOT_FOUND  # nosec B101
    assert classify_exception(PersistenceError("x")) is ErrorCode.PERSISTENCE  # nosec B101
    assert OrchestrationError.code is ErrorCode.CONFLICT  # nosec B101


def test_code_for_status_buckets_unknown_codes():
    assert code_for_status(418) is ErrorCode.VALIDATION  # nosec B101
    assert code_for_status(599) is ErrorCode.SERVER_ERROR  # nosec B101
    assert code_for_status(302) is ErrorCode.UNKNOWN  # nosec B101


def test_describe_exception_uses_type_name_for_empty_message():
    assert describe_exception(RuntimeError()) == "unknown: RuntimeError"  # nosec B101
