"""Tests for environment-driven settings."""

from __future__ import annotations

import logging
from unittest.mock import patch

import pytest

from mcp_config import LOG_FORMAT, Settings, configure_logging, getenv, load_settings

ENV_KEYS = [
    "HOST", "PORT", "LOG_LEVEL", "LOG_FILE", "CORS_ALLOW_ORIGIN",
    "OAUTH_ISSUER", "OAUTH_AUTHORIZATION_ENDPOINT", "OAUTH_TOKEN_ENDPOINT",
    "OAUTH_JWKS_URI", "OAUTH_SCOPES",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_getenv_fallback(monkeypatch):
    assert getenv("OAUTH_ISSUER", "fallback") == "fallback"
    monkeypatch.setenv("OAUTH_ISSUER", "")
    assert getenv("OAUTH_ISSUER", "fallback") == "fallback"
    monkeypatch.setenv("OAUTH_ISSUER", "https://issuer.test")
    assert getenv("OAUTH_ISSUER", "fallback") == "https://issuer.test"


def test_defaults():
    settings = load_settings()
    assert settings.host == "0.0.0.0"
    assert settings.port == 8080
    assert settings.log_level == "INFO"
    assert settings.log_file == "store-mcp-server.log"
    assert settings.cors_allow_origin == "*"
    assert settings.oauth.issuer == ""
    assert settings.oauth.scopes == ["openid", "profile", "email"]


def test_overrides(monkeypatch):
    monkeypatch.setenv("HOST", "127.0.0.1")
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("CORS_ALLOW_ORIGIN", "https://app.test")
    monkeypatch.setenv("OAUTH_TOKEN_ENDPOINT", "https://issuer.test/token")
    monkeypatch.setenv("OAUTH_SCOPES", "stores.read stores.write")
    settings = load_settings()
    assert settings.host == "127.0.0.1"
    assert settings.port == 9000
    assert settings.log_level == "DEBUG"
    assert settings.cors_allow_origin == "https://app.test"
    assert settings.oauth.token_endpoint == "https://issuer.test/token"
    assert settings.oauth.scopes == ["stores.read", "stores.write"]


def test_empty_log_file_disables_file_logging(monkeypatch):
    monkeypatch.setenv("LOG_FILE", "")
    assert load_settings().log_file is None


def test_invalid_port(monkeypatch):
    monkeypatch.setenv("PORT", "eighty")
    with pytest.raises(ValueError):
        load_settings()


def test_configure_logging_handlers(tmp_path):
    log_file = tmp_path / "server.log"
    with patch("mcp_config.logging.basicConfig") as basic_config:
        configure_logging(Settings(log_file=str(log_file), log_level="WARNING"))

    kwargs = basic_config.call_args.kwargs
    handlers = kwargs["handlers"]
    try:
        assert kwargs["level"] == "WARNING"
        assert kwargs["format"] == LOG_FORMAT
        assert isinstance(handlers[0], logging.FileHandler)
        assert handlers[0].baseFilename == str(log_file)
        assert type(handlers[1]) is logging.StreamHandler
    finally:
        for handler in handlers:
            handler.close()


def test_configure_logging_without_file():
    with patch("mcp_config.logging.basicConfig") as basic_config:
        configure_logging(Settings(log_file=None))

    handlers = basic_config.call_args.kwargs["handlers"]
    assert len(handlers) == 1
    assert not isinstance(handlers[0], logging.FileHandler)
