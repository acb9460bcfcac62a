"""
Configuration and client factories.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import httpx

from .utils.logger import get_logger
from .utils.token_cache import TokenCache
from .utils.twitch_auth import AuthManager
from .utils.twitch_client import TwitchClient

logger = get_logger("app")

REQUIRED_ENV = ("TWITCH_CLIENT_ID", "TWITCH_CLIENT_SECRET")


class ConfigError(Exception):
    """Required configuration is missing or invalid."""


@dataclass(frozen=True)
class Settings:
    client_id: str
    client_secret: str
    log_level: str = "INFO"


def _validate_env(environ: Mapping[str, str]) -> list[str]:
    """Validate required environment variables. Returns list of missing vars."""
    return [name for name in REQUIRED_ENV if not environ.get(name)]


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Read settings from the environment."""
    if environ is None:
        environ = os.environ

    missing = _validate_env(environ)
    if missing:
        raise ConfigError(f"Missing environment variable(s): {', '.join(missing)}")

    log_level = (environ.get("STREAM_WATCHER_LOG_LEVEL") or "INFO").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f"Invalid STREAM_WATCHER_LOG_LEVEL: {log_level}")

    return Settings(
        client_id=environ["TWITCH_CLIENT_ID"],
        client_secret=environ["TWITCH_CLIENT_SECRET"],
        log_level=log_level,
    )


def create_twitch_client(
    settings: Settings,
    cache_path: Path | None = None,
    http: httpx.Client | None = None,
) -> TwitchClient:
    """Authenticate (from cache when possible) and return a ready client."""
    if http is None:
        http = httpx.Client(timeout=10.0)
    cache = TokenCache(cache_path)
    logger.debug(f"Token cache at {cache.path}")
    auth = AuthManager.initialize(settings.client_id, settings.client_secret, cache, http=http)
    return TwitchClient(auth, http=http)
