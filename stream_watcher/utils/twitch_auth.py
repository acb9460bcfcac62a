"""
Twitch app access token management (client-credentials grant).

The AuthManager keeps one token in memory, backed by a TokenCache so that
restarts reuse a still-valid token instead of asking Twitch for a new one.
"""

from datetime import timedelta

import httpx

from .logger import get_logger
from .token_cache import AuthToken, TokenCache, utc_now

logger = get_logger("twitch_auth")

TOKEN_URL = "https://id.twitch.tv/oauth2/token"

# Refresh this long before the token actually expires
REFRESH_MARGIN = timedelta(seconds=5)


class AuthError(Exception):
    """No usable access token could be obtained."""


class TokenFetchError(AuthError):
    """The identity endpoint did not hand out a token."""


def fetch_app_token(http: httpx.Client, client_id: str, client_secret: str, now) -> AuthToken:
    """Request a new app access token from Twitch."""
    try:
        resp = http.post(
            TOKEN_URL,
            data={
                "client_id": client_id,
                "client_secret": client_secret,
                "grant_type": "client_credentials",
            },
        )
        resp.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise TokenFetchError(
            f"Token request failed: {e.response.status_code} - {e.response.text[:200]}"
        ) from e
    except httpx.HTTPError as e:
        raise TokenFetchError(f"Token request failed: {e}") from e

    try:
        data = resp.json()
        access_token = data["access_token"]
        expires_in = int(data["expires_in"])
    except (ValueError, KeyError, TypeError) as e:
        raise TokenFetchError(f"Malformed token response: {resp.text[:200]}") from e
    if not isinstance(access_token, str):
        raise TokenFetchError("Malformed token response: access_token is not a string")

    return AuthToken(
        client_id=client_id,
        access_token=access_token,
        expires_at=now + timedelta(seconds=expires_in),
    )


class AuthManager:
    """Owns the current app token and keeps it valid."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        token: AuthToken,
        cache: TokenCache,
        http: httpx.Client,
        clock=utc_now,
        margin: timedelta = REFRESH_MARGIN,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.current = token
        self.cache = cache
        self._http = http
        self._clock = clock
        self.margin = margin

    @classmethod
    def initialize(
        cls,
        client_id: str,
        client_secret: str,
        cache: TokenCache,
        http: httpx.Client | None = None,
        clock=utc_now,
        margin: timedelta = REFRESH_MARGIN,
    ) -> "AuthManager":
        """
        Start from the cached token, or fetch and cache a fresh one.

        Raises AuthError if a fresh token is needed and cannot be fetched.
        """
        if http is None:
            http = httpx.Client(timeout=10.0)

        token = cache.load()
        if token is not None:
            logger.info(f"Using cached token (expires at {token.expires_at.isoformat()})")
            return cls(client_id, client_secret, token, cache, http, clock, margin)

        token = fetch_app_token(http, client_id, client_secret, clock())
        manager = cls(client_id, client_secret, token, cache, http, clock, margin)
        manager._save(token)
        return manager

    def fresh_token(self) -> AuthToken:
        return fetch_app_token(self._http, self.client_id, self.client_secret, self._clock())

    def needs_refresh(self) -> bool:
        return self._clock() >= self.current.expires_at - self.margin

    def ensure_valid(self) -> None:
        """Refresh the token if it expired or is about to."""
        if not self.needs_refresh():
            return
        logger.info("Access token expired or about to, refreshing...")
        self.current = self.fresh_token()
        self._save(self.current)
        logger.info("Token refresh successful")

    def headers(self) -> dict[str, str]:
        return {
            "Client-Id": self.current.client_id,
            "Authorization": f"Bearer {self.current.access_token}",
        }

    def _save(self, token: AuthToken) -> None:
        # The in-memory token is still good, so a failed write only costs a
        # redundant fetch on the next run.
        try:
            self.cache.store(token)
        except OSError as e:
            logger.error(f"Cannot write token to {self.cache.path}: {e}")
