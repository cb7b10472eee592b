"""Perplexity adapter.

OpenAI-compatible chat/completions endpoint. Perplexity does not accept image
attachments, so only text attachments (folded into the prompt) reach it.
"""

from __future__ import annotations

from ..base.openai_style import OpenAIStyleAdapter
from ..config.defaults import PERPLEXITY_DEFAULT_BASE_URL, PERPLEXITY_DEFAULT_MODEL, PERPLEXITY_MODELS


class PerplexityProvider(OpenAIStyleAdapter):
    provider_id = "perplexity"
    display_name = "Perplexity"
    models = PERPLEXITY_MODELS
    default_model = PERPLEXITY_DEFAULT_MODEL
    default_base_url = PERPLEXITY_DEFAULT_BASE_URL
    supports_attachments = False
    stream_usage = False


__all__ = ["PerplexityProvider"]
