# gloss_annote/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional


DEFAULT_API_URL = "http://localhost:3001"
DEFAULT_PORT = 3001
DEFAULT_TIMEOUT_S = 15.0
DEFAULT_VIDEO_URL_TTL_S = 180

ENV_API_URL = "GLOSS_ANNOTE_API_URL"
ENV_TIMEOUT = "GLOSS_ANNOTE_TIMEOUT"
ENV_DATA_DIR = "GLOSS_ANNOTE_DATA_DIR"
ENV_PASSWORD = "GLOSS_ANNOTE_PASSWORD"
ENV_SECRET_KEY = "GLOSS_ANNOTE_SECRET_KEY"
ENV_VIDEO_URL_TTL = "GLOSS_ANNOTE_VIDEO_URL_TTL"
ENV_PORT = "PORT"
ENV_FRONTEND_URL = "FRONTEND_URL"


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or not str(raw).strip():
        return float(default)
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}")


@dataclass
class ClientConfig:
    """
    Desktop client settings.

    api_url is the Store's base URL without the /api prefix.
    """
    api_url: str = DEFAULT_API_URL
    timeout_s: float = DEFAULT_TIMEOUT_S
    log_to_file: bool = True

    @staticmethod
    def from_env(env: Optional[Mapping[str, str]] = None, **overrides) -> "ClientConfig":
        env = os.environ if env is None else env
        cfg = ClientConfig(
            api_url=str(env.get(ENV_API_URL) or DEFAULT_API_URL).rstrip("/"),
            timeout_s=_env_float(env, ENV_TIMEOUT, DEFAULT_TIMEOUT_S),
        )
        for k, v in overrides.items():
            if v is not None:
                setattr(cfg, k, v)
        cfg.api_url = cfg.api_url.rstrip("/")
        return cfg


@dataclass
class ServerConfig:
    """
    Reference Store settings.

    data_dir holds tasks.json, annotations.json, statuses.json and videos/.
    """
    data_dir: str = "data"
    password: str = ""
    secret_key: str = ""
    port: int = DEFAULT_PORT
    video_url_ttl_s: int = DEFAULT_VIDEO_URL_TTL_S
    token_ttl_s: int = 7 * 24 * 3600
    allowed_origins: List[str] = field(default_factory=lambda: ["http://localhost:5173"])

    @property
    def videos_dir(self) -> str:
        return os.path.join(self.data_dir, "videos")

    @staticmethod
    def from_env(env: Optional[Mapping[str, str]] = None, **overrides) -> "ServerConfig":
        env = os.environ if env is None else env
        origins = ["http://localhost:5173"]
        if env.get(ENV_FRONTEND_URL):
            origins.append(str(env[ENV_FRONTEND_URL]))
        cfg = ServerConfig(
            data_dir=str(env.get(ENV_DATA_DIR) or "data"),
            password=str(env.get(ENV_PASSWORD) or ""),
            secret_key=str(env.get(ENV_SECRET_KEY) or ""),
            port=int(_env_float(env, ENV_PORT, DEFAULT_PORT)),
            video_url_ttl_s=int(_env_float(env, ENV_VIDEO_URL_TTL, DEFAULT_VIDEO_URL_TTL_S)),
            allowed_origins=origins,
        )
        for k, v in overrides.items():
            if v is not None:
                setattr(cfg, k, v)
        return cfg

    def validate(self) -> None:
        if not self.password:
            raise ValueError(f"{ENV_PASSWORD} must be set to run the store")
        if not self.secret_key:
            raise ValueError(f"{ENV_SECRET_KEY} must be set to run the store")


class TokenStore:
    """
    Persists the bearer token between runs (QSettings, i.e. the platform's
    native settings store). Keeps an in-memory copy so reads are cheap.
    """

    KEY = "auth/token"

    def __init__(self, settings=None):
        if settings is None:
            from PyQt5.QtCore import QSettings
            settings = QSettings("gloss_annote", "client")
        self._settings = settings
        value = self._settings.value(self.KEY, "")
        self._token: Optional[str] = str(value) if value else None

    def get(self) -> Optional[str]:
        return self._token

    def set(self, token: str) -> None:
        self._token = token or None
        self._settings.setValue(self.KEY, token or "")
        self._settings.sync()

    def clear(self) -> None:
        self._token = None
        self._settings.remove(self.KEY)
        self._settings.sync()


def describe(cfg) -> Dict[str, str]:
    """Loggable view of a config (never includes secrets)."""
    out: Dict[str, str] = {}
    for k, v in vars(cfg).items():
        if k in ("password", "secret_key"):
            out[k] = "***" if v else ""
        else:
            out[k] = str(v)
    return out
