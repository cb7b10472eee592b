"""Google Gemini adapter.

``generateContent`` for single-shot calls and ``streamGenerateContent`` for
streaming, read as newline-delimited JSON. Sampling options travel in
``generationConfig``; images are sent as ``inline_data`` parts.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from ..base.errors import ErrorCode, ProviderError
from ..base.http_adapter import HTTPProviderAdapter
from ..base.models import Attachment, CompletionRequest
from ..base.streaming.normalizers import NDJSONNormalizer
from ..config.defaults import GEMINI_DEFAULT_BASE_URL, GEMINI_DEFAULT_MODEL, GEMINI_MODELS


class GeminiProvider(HTTPProviderAdapter):
    provider_id = "gemini"
    display_name = "Google Gemini"
    models = GEMINI_MODELS
    default_model = GEMINI_DEFAULT_MODEL
    default_base_url = GEMINI_DEFAULT_BASE_URL
    supports_attachments = True
    normalizer_cls = NDJSONNormalizer

    def auth_headers(self, secret: Optional[str]) -> Dict[str, str]:
        return {"x-goog-api-key": secret} if secret else {}

    def completion_url(self, model: str, stream: bool) -> str:
        method = "streamGenerateContent" if stream else "generateContent"
        return f"{self._base_url}/models/{model}:{method}"

    def build_payload(
        self,
        request: CompletionRequest,
        model: str,
        stream: bool,
        prompt: str,
        images: List[Attachment],
    ) -> Dict[str, Any]:
        opts = request.options
        parts: List[Dict[str, Any]] = [{"text": prompt}]
        parts.extend(
            {"inline_data": {"mime_type": img.media_type, "data": img.b64()}} for img in images
        )
        generation = {
            "temperature": opts.temperature,
            "topP": opts.top_p,
            "maxOutputTokens": opts.max_tokens,
            "stopSequences": list(opts.stop_sequences) or None,
        }
        payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": parts}]}
        generation = {k: v for k, v in generation.items() if v is not None}
        if generation:
            payload["generationConfig"] = generation
        return payload

    def parse_completion(self, data: Any) -> Tuple[str, Optional[int]]:
        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not isinstance(candidates, list) or not candidates:
            feedback = data.get("promptFeedback") if isinstance(data, dict) else None
            reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
            raise ProviderError(
                code=ErrorCode.VALIDATION if reason else ErrorCode.PROTOCOL,
                message=f"prompt blocked: {reason}" if reason else "response has no candidates",
                provider=self.provider_id,
            )
        content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        text = ""
        if isinstance(parts, list):
            text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
        usage = data.get("usageMetadata") or {}
        tokens = usage.get("totalTokenCount") if isinstance(usage, dict) else None
        return text, (tokens if isinstance(tokens, int) else None)

    def credential_probe(self, secret: str) -> Tuple[str, str, Dict[str, Any]]:
        return "GET", f"{self._base_url}/models", {"headers": self.auth_headers(secret)}


__all__ = ["GeminiProvider"]
