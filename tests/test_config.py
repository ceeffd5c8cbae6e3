"""Tests for environment-driven configuration and token persistence."""

import pytest

from gloss_annote.config import (
    DEFAULT_API_URL,
    ClientConfig,
    ServerConfig,
    TokenStore,
    describe,
)


class _Settings:
    """Minimal stand-in for QSettings."""

    def __init__(self, values=None):
        self.values = dict(values or {})
        self.synced = 0

    def value(self, key, default=None):
        return self.values.get(key, default)

    def setValue(self, key, value):
        self.values[key] = value

    def remove(self, key):
        self.values.pop(key, None)

    def sync(self):
        self.synced += 1


def test_client_defaults():
    cfg = ClientConfig.from_env({})
    assert cfg.api_url == DEFAULT_API_URL
    assert cfg.timeout_s == 15.0


def test_client_env_and_overrides():
    env = {"GLOSS_ANNOTE_API_URL": "https://store.example.org/", "GLOSS_ANNOTE_TIMEOUT": "4.5"}
    cfg = ClientConfig.from_env(env, timeout_s=None)
    assert cfg.api_url == "https://store.example.org"
    assert cfg.timeout_s == 4.5

    cfg = ClientConfig.from_env(env, api_url="http://other:1/")
    assert cfg.api_url == "http://other:1"


def test_bad_number():
    with pytest.raises(ValueError, match="GLOSS_ANNOTE_TIMEOUT"):
        ClientConfig.from_env({"GLOSS_ANNOTE_TIMEOUT": "fast"})


def test_server_env():
    env = {
        "GLOSS_ANNOTE_DATA_DIR": "/srv/gloss",
        "GLOSS_ANNOTE_PASSWORD": "pw",
        "GLOSS_ANNOTE_SECRET_KEY": "s3cret",
        "GLOSS_ANNOTE_VIDEO_URL_TTL": "60",
        "PORT": "8080",
        "FRONTEND_URL": "https://annotate.example.org",
    }
    cfg = ServerConfig.from_env(env, port=None)
    assert cfg.data_dir == "/srv/gloss"
    assert cfg.port == 8080
    assert cfg.video_url_ttl_s == 60
    assert cfg.allowed_origins == ["http://localhost:5173", "https://annotate.example.org"]
    cfg.validate()

    shown = describe(cfg)
    assert shown["password"] == "***"
    assert shown["secret_key"] == "***"
    assert shown["port"] == "8080"


def test_server_requires_secrets():
    with pytest.raises(ValueError, match="GLOSS_ANNOTE_PASSWORD"):
        ServerConfig.from_env({}).validate()
    with pytest.raises(ValueError, match="GLOSS_ANNOTE_SECRET_KEY"):
        ServerConfig.from_env({"GLOSS_ANNOTE_PASSWORD": "pw"}).validate()


def test_token_store_roundtrip():
    settings = _Settings({"auth/token": "saved"})
    store = TokenStore(settings)
    assert store.get() == "saved"

    store.set("fresh")
    assert store.get() == "fresh"
    assert settings.values["auth/token"] == "fresh"

    store.clear()
    assert store.get() is None
    assert "auth/token" not in settings.values
    assert TokenStore(settings).get() is None
