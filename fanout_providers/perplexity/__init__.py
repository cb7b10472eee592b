"""Perplexity provider package."""

from .client import PerplexityProvider

__all__ = ["PerplexityProvider"]
