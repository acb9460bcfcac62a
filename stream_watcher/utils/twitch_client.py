"""
Twitch Helix API client wrapper.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

import httpx

from .logger import get_logger
from .token_cache import parse_timestamp
from .twitch_auth import AuthManager

logger = get_logger("twitch_client")

HELIX_BASE = "https://api.twitch.tv/helix"

# Helix caps repeated login/user_login params and page size at 100
MAX_PER_REQUEST = 100


class ApiError(Exception):
    """A Helix request did not produce usable data."""


class ApiHttpError(ApiError):
    """Transport failure or non-2xx status."""


class ApiDecodeError(ApiError):
    """The response body was not what Helix documents."""


@dataclass(frozen=True)
class TrackedUser:
    """A channel being watched."""

    id: str
    login: str
    display_name: str


@dataclass(frozen=True)
class StreamRecord:
    """One live stream as returned by /helix/streams."""

    id: str
    user_id: str
    user_name: str
    game_id: str
    game_name: str
    viewer_count: int
    started_at: datetime


def _str_field(item: dict, key: str) -> str:
    value = item[key]
    if not isinstance(value, str):
        raise TypeError(f"{key} should be a string, got {value!r}")
    return value


def _parse_user(item: dict) -> TrackedUser:
    return TrackedUser(
        id=_str_field(item, "id"),
        login=_str_field(item, "login"),
        display_name=_str_field(item, "display_name"),
    )


def _parse_stream(item: dict) -> StreamRecord:
    viewer_count = item["viewer_count"]
    # bool is an int subclass, reject it explicitly
    if not isinstance(viewer_count, int) or isinstance(viewer_count, bool) or viewer_count < 0:
        raise ValueError(f"Invalid viewer_count: {viewer_count!r}")
    return StreamRecord(
        id=_str_field(item, "id"),
        user_id=_str_field(item, "user_id"),
        user_name=_str_field(item, "user_name"),
        game_id=_str_field(item, "game_id"),
        game_name=_str_field(item, "game_name"),
        viewer_count=viewer_count,
        started_at=parse_timestamp(_str_field(item, "started_at")),
    )


class TwitchClient:
    """Read-only access to the users and streams endpoints."""

    def __init__(self, auth: AuthManager, http: httpx.Client | None = None):
        self.auth = auth
        self._http = http if http is not None else httpx.Client(timeout=10.0)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "TwitchClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _get_data(self, path: str, param: str, values: Sequence[str], **extra) -> list:
        """GET a Helix endpoint and return the "data" lists of its envelopes.

        Helix accepts at most MAX_PER_REQUEST values per request, so longer
        lists are split across several requests.
        """
        data = []
        for start in range(0, len(values), MAX_PER_REQUEST):
            chunk = values[start:start + MAX_PER_REQUEST]
            params = [(param, value) for value in chunk] + list(extra.items())
            data.extend(self._get_page(path, params))
        return data

    def _get_page(self, path: str, params: list) -> list:
        self.auth.ensure_valid()
        url = f"{HELIX_BASE}/{path}"

        try:
            resp = self._http.get(url, params=params, headers=self.auth.headers())
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(f"API call to {url} failed: {e.response.status_code} - {e.response.text[:200]}")
            raise ApiHttpError(f"GET {url} returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ApiHttpError(f"GET {url} failed: {e}") from e

        try:
            data = resp.json()["data"]
        except (ValueError, KeyError, TypeError) as e:
            raise ApiDecodeError(f"Unexpected response from {url}: {resp.text[:200]}") from e
        if not isinstance(data, list):
            raise ApiDecodeError(f"Unexpected response from {url}: data is not a list")
        return data

    def resolve_users(self, logins: Sequence[str]) -> list[TrackedUser]:
        """Look up the user records for a list of login names."""
        data = self._get_data("users", "login", logins)
        try:
            return [_parse_user(item) for item in data]
        except (KeyError, TypeError) as e:
            raise ApiDecodeError(f"Malformed user record: {e}") from e

    def fetch_streams(self, logins: Sequence[str]) -> list[StreamRecord]:
        """Get the live streams among the given logins. Offline ones are absent."""
        data = self._get_data("streams", "user_login", logins, first=MAX_PER_REQUEST)
        try:
            return [_parse_stream(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            raise ApiDecodeError(f"Malformed stream record: {e}") from e
