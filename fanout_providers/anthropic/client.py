"""Anthropic adapter.

Messages API over ``httpx``. Streaming uses typed SSE events:
``content_block_delta`` carries text and ``message_stop`` ends the stream.
Token usage is input plus output tokens.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from ..base.errors import ErrorCode, ProviderError
from ..base.http_adapter import HTTPProviderAdapter
from ..base.models import Attachment, CompletionRequest
from ..base.streaming.normalizers import TypedEventNormalizer
from ..config.defaults import (
    ANTHROPIC_API_VERSION,
    ANTHROPIC_DEFAULT_BASE_URL,
    ANTHROPIC_DEFAULT_MAX_TOKENS,
    ANTHROPIC_DEFAULT_MODEL,
    ANTHROPIC_MODELS,
)


class AnthropicProvider(HTTPProviderAdapter):
    provider_id = "anthropic"
    display_name = "Anthropic"
    models = ANTHROPIC_MODELS
    default_model = ANTHROPIC_DEFAULT_MODEL
    default_base_url = ANTHROPIC_DEFAULT_BASE_URL
    supports_attachments = True
    normalizer_cls = TypedEventNormalizer

    def default_headers(self) -> Dict[str, str]:
        return {"anthropic-version": ANTHROPIC_API_VERSION}

    def auth_headers(self, secret: Optional[str]) -> Dict[str, str]:
        if not secret:
            return {}
        return {"x-api-key": secret, "anthropic-version": ANTHROPIC_API_VERSION}

    def completion_url(self, model: str, stream: bool) -> str:
        return f"{self._base_url}/messages"

    def build_payload(
        self,
        request: CompletionRequest,
        model: str,
        stream: bool,
        prompt: str,
        images: List[Attachment],
    ) -> Dict[str, Any]:
        opts = request.options
        if images:
            content: Any = [
                {
                    "type": "image",
                    "source": {"type": "base64", "media_type": img.media_type, "data": img.b64()},
                }
                for img in images
            ]
            content.append({"type": "text", "text": prompt})
        else:
            content = prompt
        payload: Dict[str, Any] = {
            "model": model,
            "max_tokens": opts.max_tokens or ANTHROPIC_DEFAULT_MAX_TOKENS,
            "messages": [{"role": "user", "content": content}],
            "stream": stream,
        }
        if opts.temperature is not None:
            payload["temperature"] = opts.temperature
        if opts.top_p is not None:
            payload["top_p"] = opts.top_p
        if opts.stop_sequences:
            payload["stop_sequences"] = list(opts.stop_sequences)
        return payload

    def parse_completion(self, data: Any) -> Tuple[str, Optional[int]]:
        blocks = data.get("content") if isinstance(data, dict) else None
        if not isinstance(blocks, list):
            raise ProviderError(
                code=ErrorCode.PROTOCOL,
                message="response has no content blocks",
                provider=self.provider_id,
            )
        text = "".join(
            b.get("text", "") for b in blocks if isinstance(b, dict) and b.get("type") == "text"
        )
        usage = data.get("usage") or {}
        tokens: Optional[int] = None
        if isinstance(usage, dict):
            inp = usage.get("input_tokens")
            out = usage.get("output_tokens")
            if isinstance(inp, int) or isinstance(out, int):
                tokens = (inp if isinstance(inp, int) else 0) + (out if isinstance(out, int) else 0)
        return text, tokens

    def credential_probe(self, secret: str) -> Tuple[str, str, Dict[str, Any]]:
        body = {
            "model": self._model,
            "messages": [{"role": "user", "content": "Hello"}],
            "max_tokens": 10,
        }
        headers = {"Content-Type": "application/json", **self.auth_headers(secret)}
        return "POST", f"{self._base_url}/messages", {"headers": headers, "json": body}


__all__ = ["AnthropicProvider"]
