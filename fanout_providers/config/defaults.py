"""fanout_providers.config.defaults
===============================

Central place for small, stable default values used across the
fanout_providers package, the orchestrator, and the lightweight service
layer. These defaults can be overridden via environment variables or
external configuration, but provide sensible fallbacks for local
development and tests.

This module intentionally avoids importing from other provider packages to
prevent circular dependencies. Only plain constants live here.
"""

from __future__ import annotations

# ---- Service / HTTP layer ----

# Comma-separated list of allowed origins for the dev server.
FANOUT_SERVICE_CORS_DEFAULT_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"
FANOUT_SERVICE_DEFAULT_HOST = "127.0.0.1"
FANOUT_SERVICE_DEFAULT_PORT = 8092


# ---- CLI Defaults ----
FANOUT_CLI_DEFAULT_PROVIDERS = ["mock"]


# ---- Orchestrator ----
# Wall-clock deadline for a single provider task (seconds).
ORCHESTRATOR_PROVIDER_DEADLINE_SECONDS = 120.0
# Bounded buffer between a provider stream producer and the aggregating consumer.
ORCHESTRATOR_CHANNEL_MAX_CHUNKS = 256
# Progress heuristic: characters that map to 100% and the cap before completion.
PROGRESS_EXPECTED_CHARS = 500
PROGRESS_STREAMING_CAP = 95
CANCELLED_REASON = "cancelled"


# ---- Provider-specific defaults ----
OPENAI_DEFAULT_MODEL = "gpt-4o"
OPENAI_DEFAULT_BASE_URL = "https://api.openai.com/v1"
OPENAI_MODELS = (
    "gpt-4o",
    "gpt-4o-mini",
    "gpt-4-turbo",
    "gpt-4",
    "gpt-3.5-turbo",
)

ANTHROPIC_DEFAULT_MODEL = "claude-3-opus-20240229"
ANTHROPIC_DEFAULT_BASE_URL = "https://api.anthropic.com/v1"
ANTHROPIC_API_VERSION = "2023-06-01"
ANTHROPIC_DEFAULT_MAX_TOKENS = 4000
ANTHROPIC_MODELS = (
    "claude-3-7-sonnet-20250219",
    "claude-3-5-sonnet-20241022",
    "claude-3-5-haiku-20241022",
    "claude-3-opus-20240229",
    "claude-3-sonnet-20240229",
    "claude-3-haiku-20240307",
)

GEMINI_DEFAULT_MODEL = "gemini-1.5-pro"
GEMINI_DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
GEMINI_MODELS = (
    "gemini-2.5-pro-exp-03-25",
    "gemini-2.0-flash",
    "gemini-2.0-flash-lite",
    "gemini-1.5-pro",
    "gemini-1.5-flash",
    "gemini-1.5-flash-8b",
)

PERPLEXITY_DEFAULT_MODEL = "sonar"
PERPLEXITY_DEFAULT_BASE_URL = "https://api.perplexity.ai"
PERPLEXITY_MODELS = (
    "sonar-pro",
    "sonar",
    "sonar-deep-research",
    "sonar-reasoning-pro",
    "sonar-reasoning",
    "r1-1776",
)

DEEPSEEK_DEFAULT_MODEL = "deepseek-chat"
DEEPSEEK_DEFAULT_BASE_URL = "https://api.deepseek.com/v1"
DEEPSEEK_MODELS = ("deepseek-chat", "deepseek-reasoner")

MOCK_DEFAULT_MODEL = "mock-echo"
MOCK_MODELS = ("mock-echo", "mock-slow")


# ---- SQLite config (infrastructure) ----
# Busy timeout in milliseconds applied to each connection.
SQLITE_BUSY_TIMEOUT_MS = 5000
# Journal mode favoring concurrent readers with a single writer.
SQLITE_JOURNAL_MODE = "WAL"
SQLITE_SYNCHRONOUS = "NORMAL"


__all__ = [
    "FANOUT_SERVICE_CORS_DEFAULT_ORIGINS",
    "FANOUT_SERVICE_DEFAULT_HOST",
    "FANOUT_SERVICE_DEFAULT_PORT",
    "FANOUT_CLI_DEFAULT_PROVIDERS",
    "ORCHESTRATOR_PROVIDER_DEADLINE_SECONDS",
    "ORCHESTRATOR_CHANNEL_MAX_CHUNKS",
    "PROGRESS_EXPECTED_CHARS",
    "PROGRESS_STREAMING_CAP",
    "CANCELLED_REASON",
    "OPENAI_DEFAULT_MODEL",
    "OPENAI_DEFAULT_BASE_URL",
    "OPENAI_MODELS",
    "ANTHROPIC_DEFAULT_MODEL",
    "ANTHROPIC_DEFAULT_BASE_URL",
    "ANTHROPIC_API_VERSION",
    "ANTHROPIC_DEFAULT_MAX_TOKENS",
    "ANTHROPIC_MODELS",
    "GEMINI_DEFAULT_MODEL",
    "GEMINI_DEFAULT_BASE_URL",
    "GEMINI_MODELS",
    "PERPLEXITY_DEFAULT_MODEL",
    "PERPLEXITY_DEFAULT_BASE_URL",
    "PERPLEXITY_MODELS",
    "DEEPSEEK_DEFAULT_MODEL",
    "DEEPSEEK_DEFAULT_BASE_URL",
    "DEEPSEEK_MODELS",
    "MOCK_DEFAULT_MODEL",
    "MOCK_MODELS",
    "SQLITE_BUSY_TIMEOUT_MS",
    "SQLITE_JOURNAL_MODE",
    "SQLITE_SYNCHRONOUS",
]
