"""HTTP adapters exercised against ``httpx.MockTransport``.

No network: each test installs a handler that records the outgoing request
and replies with a canned body, then checks both directions of the wire
mapping.
"""
from __future__ import annotations

import json
from typing import Any, AsyncIterator, Callable, Dict, List

import httpx
import pytest

from fanout_providers.anthropic import AnthropicProvider
from fanout_providers.base.cancellation import CancellationToken
from fanout_providers.base.models import Attachment
from fanout_providers.deepseek import DeepSeekProvider
from fanout_providers.gemini import GeminiProvider
from fanout_providers.openai import OpenAIProvider
from fanout_providers.perplexity import PerplexityProvider

PNG = Attachment(data=b"\x89PNG", media_type="image/png", name="pic.png")
NOTE = Attachment(data=b"remember the milk", media_type="text/plain", name="note.txt")


class Recorder:
    """MockTransport handler that stores requests and returns a fixed reply."""

    def __init__(self, reply: Callable[[httpx.Request], httpx.Response]) -> None:
        self.reply = reply
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.reply(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Dict[str, Any]:
        return json.loads(self.last.content)


def _client(recorder: Recorder) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(recorder))


async def _pieces(*parts: bytes) -> AsyncIterator[bytes]:
    for part in parts:
        yield part


async def _collect(stream) -> list:
    return [chunk async for chunk in stream]


# ----------------------------------------------------------------- OpenAI


@pytest.mark.asyncio
async def test_openai_payload_and_single_shot_parse(make_request):
    rec = Recorder(
        lambda req: httpx.Response(
            200,
            json={"choices": [{"message": {"content": "Hi there"}}], "usage": {"total_tokens": 12}},
        )
    )
    async with _client(rec) as client:
        adapter = OpenAIProvider(api_key="sk-test", http_client=client)
        request = make_request(
            attachments=(PNG, NOTE),
            max_tokens=64,
            temperature=0.2,
            stop_sequences=("END",),
            preferred_model_id="gpt-4o-mini",
            streaming_enabled=False,
        )
        response = await adapter.generate_completion(request)

    assert response.text == "Hi there" and response.tokens_used == 12
    assert response.model_id == "gpt-4o-mini" and response.error is None
    assert str(rec.last.url) == "https://api.openai.com/v1/chat/completions"
    assert rec.last.headers["Authorization"] == "Bearer sk-test"
    body = rec.last_json()
    assert body["model"] == "gpt-4o-mini" and body["stream"] is False
    assert body["max_tokens"] == 64 and body["temperature"] == 0.2 and body["stop"] == ["END"]
    assert "top_p" not in body
    content = body["messages"][0]["content"]
    assert content[0]["type"] == "text"
    assert "[note.txt]\nremember the milk" in content[0]["text"]
    assert content[1]["image_url"]["url"].startswith("data:image/png;base64,")


@pytest.mark.asyncio
async def test_openai_stream_split_across_reads(make_request):
    body = (
        'data: {"choices":[{"delta":{"content":"Hel"}}]}\n\n'
        'data: {"choices":[{"delta":{"content":"lo"}}]}\n\n'
        'data: {"choices":[],"usage":{"total_tokens":7}}\n\n'
        "data: [DONE]\n\n"
    ).encode()
    rec = Recorder(lambda req: httpx.Response(200, content=_pieces(body[:30], body[30:61], body[61:])))
    async with _client(rec) as client:
        adapter = OpenAIProvider(api_key="sk-test", http_client=client)
        chunks = await _collect(adapter.stream_completion(make_request()))

    assert [c.text for c in chunks if not c.is_complete] == ["Hel", "lo"]
    assert chunks[-1].is_complete and chunks[-1].tokens_used == 7
    payload = rec.last_json()
    assert payload["stream"] is True and payload["stream_options"] == {"include_usage": True}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, body, expected",
    [
        (401, {"error": {"message": "Incorrect API key"}}, "auth: Incorrect API key"),
        (429, {"message": "Too many requests"}, "rate_limit: Too many requests"),
        (500, {"error": "boom"}, "server_error: boom"),
        (503, None, "unavailable: OpenAI API error: Status 503"),
    ],
)
async def test_openai_http_errors_become_error_responses(make_request, status, body, expected):
    def reply(req: httpx.Request) -> httpx.Response:
        if body is None:
            return httpx.Response(status, text="<html>down</html>")
        return httpx.Response(status, json=body)

    rec = Recorder(reply)
    async with _client(rec) as client:
        adapter = OpenAIProvider(api_key="sk-test", http_client=client)
        response = await adapter.generate_completion(make_request())
        chunks = await _collect(adapter.stream_completion(make_request()))

    assert response.text == "" and response.error == expected
    assert len(chunks) == 1 and chunks[0].is_complete and chunks[0].error == expected


@pytest.mark.asyncio
async def test_missing_credential_fails_without_network(make_request):
    rec = Recorder(lambda req: httpx.Response(200, json={}))
    async with _client(rec) as client:
        adapter = OpenAIProvider(http_client=client)
        response = await adapter.generate_completion(make_request())
        chunks = await _collect(adapter.stream_completion(make_request()))

    expected = "auth: no credential or proxy endpoint configured for provider 'openai'"
    assert response.error == expected
    assert chunks[-1].error == expected
    assert rec.requests == []
    assert not adapter.has_credential


@pytest.mark.asyncio
async def test_pre_cancelled_token_short_circuits(make_request):
    rec = Recorder(lambda req: httpx.Response(200, json={}))
    token = CancellationToken()
    token.cancel("cancelled")
    async with _client(rec) as client:
        adapter = OpenAIProvider(api_key="sk-test", http_client=client)
        response = await adapter.generate_completion(make_request(), token)
        chunks = await _collect(adapter.stream_completion(make_request(), token))

    assert response.error == "cancelled"
    assert [c.error for c in chunks] == ["cancelled"]
    assert rec.requests == []


@pytest.mark.asyncio
async def test_openai_credential_probe(make_request):
    statuses = iter([200, 429, 401])
    rec = Recorder(lambda req: httpx.Response(next(statuses), json={}))
    async with _client(rec) as client:
        adapter = OpenAIProvider(http_client=client)
        results = [await adapter.validate_credential("sk-probe") for _ in range(3)]
        blank = await adapter.validate_credential("   ")

    assert results == [True, True, False]
    assert blank is False
    assert len(rec.requests) == 3
    assert rec.last.method == "GET" and str(rec.last.url).endswith("/models")
    assert rec.last.headers["Authorization"] == "Bearer sk-probe"


@pytest.mark.asyncio
async def test_transport_failure_makes_probe_false_and_stream_terminal(make_request):
    def reply(req: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=req)

    rec = Recorder(reply)
    async with _client(rec) as client:
        adapter = OpenAIProvider(api_key="sk-test", http_client=client)
        assert await adapter.validate_credential("sk-probe") is False
        chunks = await _collect(adapter.stream_completion(make_request()))

    assert chunks[-1].is_complete and chunks[-1].error.startswith("transient: ")


@pytest.mark.asyncio
async def test_unencodable_key_makes_probe_false(captured_logs):
    rec = Recorder(lambda req: httpx.Response(200, json={}))
    async with _client(rec) as client:
        adapter = OpenAIProvider(api_key="k", http_client=client)
        assert await adapter.validate_credential("sk-ключ") is False

    assert rec.requests == []
    events = captured_logs.events("credential.validate")
    assert len(events) == 1 and events[0]["valid"] is False


# -------------------------------------------------------------- Perplexity


@pytest.mark.asyncio
async def test_perplexity_drops_images_keeps_text(make_request, captured_logs):
    rec = Recorder(lambda req: httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]}))
    async with _client(rec) as client:
        adapter = PerplexityProvider(api_key="pplx", http_client=client)
        response = await adapter.generate_completion(make_request(attachments=(PNG, NOTE)))

    assert response.text == "ok" and response.model_id == "sonar"
    content = rec.last_json()["messages"][0]["content"]
    assert isinstance(content, str) and "remember the milk" in content
    skipped = captured_logs.events("attachments.skipped")
    assert skipped and skipped[0]["media_types"] == ["image/png"]


# --------------------------------------------------------------- Anthropic


@pytest.mark.asyncio
async def test_anthropic_headers_payload_and_parse(make_request):
    rec = Recorder(
        lambda req: httpx.Response(
            200,
            json={
                "content": [{"type": "text", "text": "Bonjour"}, {"type": "tool_use", "id": "x"}],
                "usage": {"input_tokens": 9, "output_tokens": 3},
            },
        )
    )
    async with _client(rec) as client:
        adapter = AnthropicProvider(api_key="ak", http_client=client)
        response = await adapter.generate_completion(make_request(attachments=(PNG,)))

    assert response.text == "Bonjour" and response.tokens_used == 12
    assert response.model_id == "claude-3-opus-20240229"
    assert str(rec.last.url) == "https://api.anthropic.com/v1/messages"
    assert rec.last.headers["x-api-key"] == "ak"
    assert rec.last.headers["anthropic-version"] == "2023-06-01"
    body = rec.last_json()
    assert body["max_tokens"] == 4000 and "temperature" not in body
    content = body["messages"][0]["content"]
    assert content[0]["type"] == "image" and content[0]["source"]["media_type"] == "image/png"
    assert content[-1] == {"type": "text", "text": "Say hello"}


@pytest.mark.asyncio
async def test_anthropic_typed_event_stream(make_request):
    events = [
        ("message_start", {"type": "message_start", "message": {"usage": {"input_tokens": 10, "output_tokens": 1}}}),
        ("content_block_delta", {"type": "content_block_delta", "delta": {"type": "text_delta", "text": "Hi"}}),
        ("ping", {"type": "ping"}),
        ("content_block_delta", {"type": "content_block_delta", "delta": {"type": "text_delta", "text": "!"}}),
        ("message_delta", {"type": "message_delta", "usage": {"output_tokens": 5}}),
        ("message_stop", {"type": "message_stop"}),
    ]
    body = "".join(f"event: {name}\ndata: {json.dumps(data)}\n\n" for name, data in events).encode()
    rec = Recorder(lambda req: httpx.Response(200, content=_pieces(body[:17], body[17:])))
    async with _client(rec) as client:
        adapter = AnthropicProvider(api_key="ak", http_client=client)
        chunks = await _collect(adapter.stream_completion(make_request()))

    assert "".join(c.text for c in chunks) == "Hi!"
    assert chunks[-1].is_complete and chunks[-1].tokens_used == 15
    assert rec.last_json()["stream"] is True


# ------------------------------------------------------------------ Gemini


@pytest.mark.asyncio
async def test_gemini_url_payload_and_stream(make_request):
    lines = [
        {"candidates": [{"content": {"parts": [{"text": "Hola"}]}}]},
        {"candidates": [{"content": {"parts": [{"text": " mundo"}]}}], "usageMetadata": {"totalTokenCount": 8}},
    ]
    body = "\n".join(json.dumps(line) for line in lines).encode()
    rec = Recorder(lambda req: httpx.Response(200, content=_pieces(body[:25], body[25:])))
    async with _client(rec) as client:
        adapter = GeminiProvider(api_key="gk", http_client=client)
        chunks = await _collect(adapter.stream_completion(make_request(temperature=0.5, attachments=(PNG,))))

    assert "".join(c.text for c in chunks) == "Hola mundo"
    assert chunks[-1].tokens_used == 8
    assert rec.last.url.path.endswith("/models/gemini-1.5-pro:streamGenerateContent")
    assert rec.last.headers["x-goog-api-key"] == "gk"
    payload = rec.last_json()
    assert payload["generationConfig"] == {"temperature": 0.5}
    parts = payload["contents"][0]["parts"]
    assert parts[0] == {"text": "Say hello"}
    assert parts[1]["inline_data"]["mime_type"] == "image/png"


@pytest.mark.asyncio
async def test_gemini_blocked_prompt_is_validation_error(make_request):
    rec = Recorder(lambda req: httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}}))
    async with _client(rec) as client:
        adapter = GeminiProvider(api_key="gk", http_client=client)
        response = await adapter.generate_completion(make_request())

    assert response.error == "validation: prompt blocked: SAFETY"
    assert str(rec.last.url).endswith(":generateContent")


# ----------------------------------------------------------------- proxied


@pytest.mark.asyncio
async def test_proxied_adapter_sends_no_credential(make_request):
    rec = Recorder(lambda req: httpx.Response(200, json={"choices": [{"message": {"content": "via proxy"}}]}))
    async with _client(rec) as client:
        adapter = OpenAIProvider(base_url="https://proxy.local/api/ai/openai/", proxied=True, http_client=client)
        response = await adapter.generate_completion(make_request())

    assert adapter.has_credential
    assert response.text == "via proxy"
    assert str(rec.last.url) == "https://proxy.local/api/ai/openai/chat/completions"
    assert "Authorization" not in rec.last.headers


@pytest.mark.asyncio
async def test_callback_streaming_form(make_request):
    body = b'data: {"choices":[{"delta":{"content":"x"}}]}\n\ndata: [DONE]\n\n'
    rec = Recorder(lambda req: httpx.Response(200, content=body))
    seen = []

    async def on_chunk(chunk):
        seen.append(chunk)

    async with _client(rec) as client:
        adapter = OpenAIProvider(api_key="sk-test", http_client=client)
        await adapter.generate_streaming_completion(make_request(), on_chunk)

    assert [c.text for c in seen] == ["x", ""]
    assert seen[-1].is_complete


@pytest.mark.asyncio
async def test_deepseek_is_text_only_openai_style(make_request):
    rec = Recorder(lambda req: httpx.Response(200, json={"choices": [{"message": {"content": "深度"}}]}))
    async with _client(rec) as client:
        adapter = DeepSeekProvider(api_key="ds", http_client=client)
        response = await adapter.generate_completion(make_request(attachments=(PNG,)))

    assert response.text == "深度" and response.model_id == "deepseek-chat"
    assert str(rec.last.url) == "https://api.deepseek.com/v1/chat/completions"
    assert rec.last_json()["messages"][0]["content"] == "Say hello"
    assert adapter.info.supports_attachments is False
