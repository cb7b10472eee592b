"""Unit tests for cooperative cancellation primitives.

Covers idempotent cancel and raise_if_cancelled behavior.
"""
from __future__ import annotations

import pytest

from fanout_providers.base.cancellation import CancellationToken, CancelledError


def test_cancel_is_idempotent_and_keeps_first_reason():
    token = CancellationToken()

    assert token.cancel(reason="stop") is True  # nosec B101
    assert token.cancel(reason="ignored") is False  # nosec B101

    assert token.cancelled is True and token.reason == "stop"  # nosec B101


def test_raise_if_cancelled_uses_reason_or_default():
    token = CancellationToken()
    token.raise_if_cancelled()
    token.cancel()
    with pytest.raises(CancelledError) as info:
        token.raise_if_cancelled()
    assert str(info.value) == "cancelled"  # nosec B101

    reasoned = CancellationToken()
    reasoned.cancel("user stop")
    with pytest.raises(CancelledError, match="user stop"):
        reasoned.raise_if_cancelled()
