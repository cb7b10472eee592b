"""Pytest configuration for the fan-out test suite.

Shared fixtures:
- ``captured_logs``: collects structured log events emitted under the
  ``fanout`` logger (it does not propagate to root, so ``caplog`` sees
  nothing).
- ``recording_store``: in-memory ``ICompletionStore`` that records calls.
- ``make_request``: factory for ``CompletionRequest`` instances.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

import pytest

from fanout_providers.base.logging import get_logger
from fanout_providers.base.models import (
    Attachment,
    CompletionRequest,
    CompletionResponse,
    GenerationOptions,
)


class ListHandler(logging.Handler):
    """Capture log records into a list for assertions."""

    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.messages: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.messages.append(record.getMessage())

    def events(self, name: Optional[str] = None) -> List[Dict[str, Any]]:
        """Decoded JSON payloads, optionally filtered by event name."""
        out = []
        for msg in self.messages:
            try:
                payload = json.loads(msg)
            except ValueError:
                continue
            if name is None or payload.get("event") == name:
                out.append(payload)
        return out


@pytest.fixture()
def captured_logs(monkeypatch: pytest.MonkeyPatch) -> Iterator[ListHandler]:
    monkeypatch.setenv("FANOUT_LOG_LEVEL", "DEBUG")
    base = get_logger()
    handler = ListHandler()
    base.addHandler(handler)
    yield handler
    base.removeHandler(handler)


class RecordingStore:
    """In-memory completion store; ``fail=True`` makes every call raise."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.prompts: List[Tuple[CompletionRequest, Dict[str, Any]]] = []
        self.saved: List[Tuple[CompletionResponse, Dict[str, Any]]] = []

    def save_prompt(self, request: CompletionRequest, metadata: Dict[str, Any]) -> Optional[str]:
        if self.fail:
            raise OSError("disk full")
        self.prompts.append((request, metadata))
        return f"prompt-{len(self.prompts)}"

    def save(self, response: CompletionResponse, metadata: Dict[str, Any]) -> None:
        if self.fail:
            raise OSError("disk full")
        self.saved.append((response, metadata))

    def saved_for(self, provider_id: str) -> List[CompletionResponse]:
        return [resp for resp, meta in self.saved if meta.get("provider_id") == provider_id]


@pytest.fixture()
def recording_store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture()
def make_request() -> Callable[..., CompletionRequest]:
    def _make(
        prompt: str = "Say hello",
        attachments: Tuple[Attachment, ...] = (),
        **options: Any,
    ) -> CompletionRequest:
        return CompletionRequest(prompt=prompt, attachments=attachments, options=GenerationOptions(**options))

    return _make
