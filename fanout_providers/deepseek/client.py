"""DeepSeek adapter (OpenAI-compatible API, text only)."""

from __future__ import annotations

from ..base.openai_style import OpenAIStyleAdapter
from ..config.defaults import DEEPSEEK_DEFAULT_BASE_URL, DEEPSEEK_DEFAULT_MODEL, DEEPSEEK_MODELS


class DeepSeekProvider(OpenAIStyleAdapter):
    provider_id = "deepseek"
    display_name = "DeepSeek"
    models = DEEPSEEK_MODELS
    default_model = DEEPSEEK_DEFAULT_MODEL
    default_base_url = DEEPSEEK_DEFAULT_BASE_URL
    supports_attachments = False


__all__ = ["DeepSeekProvider"]
