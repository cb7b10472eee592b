"""Persistence interfaces: the completion store protocol and record DTOs."""

from .repos import ICompletionStore, PromptRecord, ResponseRecord  # noqa: F401

__all__ = ["ICompletionStore", "PromptRecord", "ResponseRecord"]
