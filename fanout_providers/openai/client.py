"""OpenAI adapter.

Chat Completions API over ``httpx``; streaming uses SSE with a ``[DONE]``
sentinel. Image attachments are sent as ``image_url`` data URIs.
"""

from __future__ import annotations

from ..base.openai_style import OpenAIStyleAdapter
from ..config.defaults import OPENAI_DEFAULT_BASE_URL, OPENAI_DEFAULT_MODEL, OPENAI_MODELS


class OpenAIProvider(OpenAIStyleAdapter):
    provider_id = "openai"
    display_name = "OpenAI"
    models = OPENAI_MODELS
    default_model = OPENAI_DEFAULT_MODEL
    default_base_url = OPENAI_DEFAULT_BASE_URL
    supports_attachments = True

    def credential_probe_result(self, status: int) -> bool:
        # 429 means the key was recognized but is rate limited.
        if status == 429:
            return True
        return 200 <= status < 300


__all__ = ["OpenAIProvider"]
