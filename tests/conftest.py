"""Shared test fixtures for store-mcp-server."""

from __future__ import annotations

import json

import pytest

from mcp_config import Settings
from mcp_protocol import Dispatcher
from mcp_server import create_app


INIT_PARAMS = {
    "protocolVersion": "2024-11-05",
    "capabilities": {},
    "clientInfo": {"name": "pytest", "version": "1.0"},
}


@pytest.fixture
def dispatcher() -> Dispatcher:
    """A fresh dispatcher with its own session state."""
    return Dispatcher()


@pytest.fixture
def ready_dispatcher(dispatcher) -> Dispatcher:
    """A dispatcher that has completed the handshake."""
    dispatcher.handle(json.dumps({"jsonrpc": "2.0", "id": 0, "method": "initialize", "params": INIT_PARAMS}))
    return dispatcher


@pytest.fixture
def settings() -> Settings:
    return Settings(log_file=None, cors_allow_origin="https://example.test")


@pytest.fixture
def app(settings):
    app = create_app(settings, Dispatcher())
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def init_params() -> dict:
    return json.loads(json.dumps(INIT_PARAMS))


@pytest.fixture
def rpc():
    """Send one envelope through handle() and decode the reply."""

    def _send(dispatcher: Dispatcher, payload) -> dict | None:
        raw = payload if isinstance(payload, (bytes, str)) else json.dumps(payload)
        out = dispatcher.handle(raw)
        return None if out is None else json.loads(out)

    return _send
