"""OpenAI-compatible chat/completions adapter base.

Shared by the OpenAI, Perplexity, and DeepSeek adapters: Bearer auth,
``POST {base}/chat/completions`` with a single user message, SSE streaming
terminated by ``data: [DONE]``, and a ``GET {base}/models`` credential probe.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from .errors import ErrorCode, ProviderError
from .http_adapter import HTTPProviderAdapter
from .models import Attachment, CompletionRequest
from .streaming.normalizers import SSEDoneNormalizer


class OpenAIStyleAdapter(HTTPProviderAdapter):
    normalizer_cls = SSEDoneNormalizer
    # Ask for a final usage chunk when streaming (not every compatible API accepts it).
    stream_usage = True

    def auth_headers(self, secret: Optional[str]) -> Dict[str, str]:
        return {"Authorization": f"Bearer {secret}"} if secret else {}

    def completion_url(self, model: str, stream: bool) -> str:
        return f"{self._base_url}/chat/completions"

    def user_content(self, prompt: str, images: List[Attachment]) -> Any:
        if not images:
            return prompt
        parts: List[Dict[str, Any]] = [{"type": "text", "text": prompt}]
        parts.extend({"type": "image_url", "image_url": {"url": img.data_uri()}} for img in images)
        return parts

    def build_payload(
        self,
        request: CompletionRequest,
        model: str,
        stream: bool,
        prompt: str,
        images: List[Attachment],
    ) -> Dict[str, Any]:
        opts = request.options
        payload: Dict[str, Any] = {
            "model": model,
            "messages": [{"role": "user", "content": self.user_content(prompt, images)}],
            "stream": stream,
        }
        optional = {
            "max_tokens": opts.max_tokens,
            "temperature": opts.temperature,
            "top_p": opts.top_p,
            "presence_penalty": opts.presence_penalty,
            "frequency_penalty": opts.frequency_penalty,
            "stop": list(opts.stop_sequences) or None,
        }
        payload.update({k: v for k, v in optional.items() if v is not None})
        if stream and self.stream_usage:
            payload["stream_options"] = {"include_usage": True}
        return payload

    def parse_completion(self, data: Any) -> Tuple[str, Optional[int]]:
        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            raise ProviderError(
                code=ErrorCode.PROTOCOL,
                message="response has no choices",
                provider=self.provider_id,
            )
        message = choices[0].get("message") or {}
        text = message.get("content") if isinstance(message, dict) else None
        usage = data.get("usage") or {}
        tokens = usage.get("total_tokens") if isinstance(usage, dict) else None
        return (text if isinstance(text, str) else ""), (tokens if isinstance(tokens, int) else None)

    def credential_probe(self, secret: str) -> Tuple[str, str, Dict[str, Any]]:
        return "GET", f"{self._base_url}/models", {"headers": self.auth_headers(secret)}


__all__ = ["OpenAIStyleAdapter"]
