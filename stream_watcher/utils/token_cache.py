"""
On-disk cache for the Twitch app access token.

The cache is opportunistic: a missing, unreadable, corrupt or expired file
just means a fresh token gets fetched.
"""

import json
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from platformdirs import user_cache_path

from .logger import get_logger

logger = get_logger("token_cache")

APP_NAME = "twitch-notif-daemon"
APP_AUTHOR = "geekingfrog"
CACHE_FILENAME = "cached_token.json"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def default_cache_path() -> Path:
    """Per-user cache location, e.g. ~/.cache/twitch-notif-daemon/cached_token.json."""
    return user_cache_path(APP_NAME, APP_AUTHOR) / CACHE_FILENAME


def parse_timestamp(value: str) -> datetime:
    # fromisoformat() only learned about the "Z" suffix in 3.11
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class AuthToken:
    """An app access token and the moment it stops being usable."""

    client_id: str
    access_token: str
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at

    def to_dict(self) -> dict:
        return {
            "client_id": self.client_id,
            "access_token": self.access_token,
            "expires_at": self.expires_at.astimezone(timezone.utc).isoformat().replace("+00:00", "Z"),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AuthToken":
        """Build a token from its JSON form. Raises ValueError on bad input."""
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
        try:
            client_id = data["client_id"]
            access_token = data["access_token"]
            expires_at = data["expires_at"]
        except KeyError as e:
            raise ValueError(f"Missing field {e}") from e
        if not all(isinstance(v, str) for v in (client_id, access_token, expires_at)):
            raise ValueError("Token fields must be strings")
        return cls(
            client_id=client_id,
            access_token=access_token,
            expires_at=parse_timestamp(expires_at),
        )


class TokenCache:
    """Reads and writes one AuthToken as JSON at a fixed path."""

    def __init__(self, path: Path | None = None, clock=utc_now):
        self.path = Path(path) if path is not None else default_cache_path()
        self._clock = clock

    def load(self) -> AuthToken | None:
        """Return the cached token if there is one that has not expired yet."""
        try:
            content = self.path.read_bytes()
        except OSError:
            logger.info(f"Cannot open {self.path}, getting a fresh token")
            return None

        logger.debug("Found a cached token")
        try:
            token = AuthToken.from_dict(json.loads(content.decode("utf-8")))
        except (ValueError, RecursionError):
            # UnicodeDecodeError and JSONDecodeError are ValueErrors too
            logger.info("Cannot parse token from cache, getting a fresh one")
            return None

        if not token.is_valid(self._clock()):
            logger.info("Cached token expired, getting a new one")
            return None
        return token

    def store(self, token: AuthToken) -> None:
        """Persist the token, replacing whatever was cached before."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".token-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(token.to_dict(), f, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info(f"Token saved to {self.path}")
