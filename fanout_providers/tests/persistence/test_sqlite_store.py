"""SQLite completion store against a temporary database file."""
from __future__ import annotations

from datetime import timezone

import pytest

from fanout_providers.base.models import Attachment, CompletionResponse
from fanout_providers.base.registry import ProviderRegistry
from fanout_providers.mock import MockProvider
from fanout_providers.orchestration import CompletionOrchestrator
from fanout_providers.persistence.sqlite import SqliteCompletionStore
from fanout_providers.persistence.sqlite.engine import get_db_path


@pytest.fixture()
def store(tmp_path) -> SqliteCompletionStore:
    return SqliteCompletionStore(str(tmp_path / "nested" / "completions.db"))


def test_prompt_round_trip_keeps_names_not_bytes(store, make_request):
    request = make_request(
        prompt="Compare these",
        attachments=(Attachment(data=b"\x00" * 10, media_type="image/png", name="a.png"),),
    )
    prompt_id = store.save_prompt(request, {"request_id": "r1", "provider_ids": ["mock"]})

    record = store.get_prompt(prompt_id)
    assert record is not None
    assert record.prompt == "Compare these"
    assert record.attachment_names == ["a.png"]
    assert record.metadata == {"request_id": "r1", "provider_ids": ["mock"]}
    assert record.created_at.tzinfo == timezone.utc
    assert store.get_prompt("missing") is None


def test_responses_include_errors_and_filter_by_prompt(store, make_request):
    first = store.save_prompt(make_request(), {})
    second = store.save_prompt(make_request(), {})
    store.save(
        CompletionResponse(text="hi", model_id="gpt-4o", execution_time_ms=12, tokens_used=5),
        {"provider_id": "openai", "prompt_id": first, "request_id": "r1", "user_id": "u"},
    )
    store.save(
        CompletionResponse.failure("claude-3-opus-20240229", "auth: bad key", 3),
        {"provider_id": "anthropic", "prompt_id": first, "request_id": "r1", "user_id": None},
    )
    store.save(
        CompletionResponse(text="other", model_id="sonar", execution_time_ms=1),
        {"provider_id": "perplexity", "prompt_id": second},
    )

    rows = store.list_responses(first)
    assert [r.provider_id for r in rows] == ["openai", "anthropic"]
    ok, failed = rows
    assert ok.ok and ok.text == "hi" and ok.tokens_used == 5
    assert ok.metadata == {"request_id": "r1", "user_id": "u"}
    assert not failed.ok and failed.error == "auth: bad key" and failed.text == ""
    assert failed.tokens_used is None
    assert len(store.list_responses()) == 3
    assert len(store.list_responses(limit=1)) == 1


def test_db_path_resolution(monkeypatch, tmp_path):
    monkeypatch.setenv("FANOUT_DB_PATH", str(tmp_path / "env.db"))
    assert get_db_path() == tmp_path / "env.db"
    assert get_db_path(str(tmp_path / "arg.db")) == tmp_path / "arg.db"
    monkeypatch.delenv("FANOUT_DB_PATH")
    assert get_db_path().name == "completions.db"


@pytest.mark.asyncio
async def test_orchestrator_writes_through_sqlite(store, make_request):
    registry = ProviderRegistry(
        [
            MockProvider(provider_id="good", chunks=["fine"]),
            MockProvider(provider_id="bad", fail_with="server_error: boom"),
        ]
    )
    orch = CompletionOrchestrator(registry, store=store)

    await orch.send_to_multiple_services(["good", "bad"], make_request())

    rows = store.list_responses()
    assert sorted(r.provider_id for r in rows) == ["bad", "good"]
    prompt_ids = {r.prompt_id for r in rows}
    assert len(prompt_ids) == 1
    prompt = store.get_prompt(prompt_ids.pop())
    assert prompt is not None and prompt.metadata["provider_ids"] == ["good", "bad"]
