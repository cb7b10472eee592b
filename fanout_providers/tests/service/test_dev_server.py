from __future__ import annotations

import pytest

from fanout_providers.service import dev_server


@pytest.fixture()
def captured_run(monkeypatch):
    calls = []
    monkeypatch.setattr(dev_server.uvicorn, "run", lambda app, **kw: calls.append((app, kw)))
    for name in ("FANOUT_SERVICE_HOST", "FANOUT_SERVICE_PORT", "FANOUT_SERVICE_RELOAD"):
        monkeypatch.delenv(name, raising=False)
    return calls


def test_defaults(captured_run):
    dev_server.main()
    app, kw = captured_run[0]
    assert app == "fanout_providers.service.app:app"
    assert kw == {"host": "127.0.0.1", "port": 8092, "reload": True}


def test_env_overrides_and_bad_port(captured_run, monkeypatch):
    monkeypatch.setenv("FANOUT_SERVICE_HOST", "0.0.0.0")
    monkeypatch.setenv("FANOUT_SERVICE_PORT", "not-a-port")
    monkeypatch.setenv("FANOUT_SERVICE_RELOAD", "false")
    dev_server.main()
    _, kw = captured_run[0]
    assert kw == {"host": "0.0.0.0", "port": 8092, "reload": False}
