"""TimeoutConfig env parsing and httpx timeout construction."""
from __future__ import annotations

from fanout_providers.base.timeouts import TimeoutConfig, build_httpx_timeout, get_timeout_config


def test_defaults(monkeypatch):
    for name in (
        "FANOUT_TIMEOUT_CONNECT_SECONDS",
        "FANOUT_TIMEOUT_HTTP_SECONDS",
        "FANOUT_PROVIDER_DEADLINE_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    cfg = get_timeout_config()
    assert cfg == TimeoutConfig()
    assert cfg.provider_deadline_seconds == 120.0


def test_env_changes_refresh_the_cache(monkeypatch):
    monkeypatch.setenv("FANOUT_PROVIDER_DEADLINE_SECONDS", "2.5")
    assert get_timeout_config().provider_deadline_seconds == 2.5
    monkeypatch.setenv("FANOUT_PROVIDER_DEADLINE_SECONDS", "7")
    assert get_timeout_config().provider_deadline_seconds == 7.0


def test_invalid_or_non_positive_values_fall_back(monkeypatch):
    monkeypatch.setenv("FANOUT_TIMEOUT_HTTP_SECONDS", "soon")
    monkeypatch.setenv("FANOUT_TIMEOUT_CONNECT_SECONDS", "-1")
    cfg = get_timeout_config()
    assert cfg.http_timeout_seconds == 30.0
    assert cfg.connect_timeout_seconds == 10.0


def test_build_httpx_timeout_uses_config():
    timeout = build_httpx_timeout(TimeoutConfig(connect_timeout_seconds=1.0, http_timeout_seconds=4.0))
    assert timeout.connect == 1.0
    assert timeout.read == 4.0
