"""
Pytest configuration
Provides common fixtures: a controllable clock, a temp token cache and a
fake Twitch API served through httpx.MockTransport.
"""
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from stream_watcher.utils.token_cache import AuthToken, TokenCache

T0 = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now=T0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


class FakeTwitch:
    """Minimal stand-in for id.twitch.tv and api.twitch.tv/helix."""

    def __init__(self):
        self.users = {}
        self.live = {}
        self.token_requests = 0
        self.token_status = 200
        self.token_body = None
        self.api_status = 200
        self.requests = []

    def add_user(self, user_id, login, display_name=None):
        self.users[login] = {
            "id": user_id,
            "login": login,
            "display_name": display_name or login.capitalize(),
        }

    def set_viewers(self, login, count):
        if count is None:
            self.live.pop(login, None)
        else:
            self.live[login] = count

    def _stream(self, login, count):
        user = self.users[login]
        return {
            "id": f"s{user['id']}",
            "user_id": user["id"],
            "user_name": user["display_name"],
            "game_id": "509658",
            "game_name": "Just Chatting",
            "viewer_count": count,
            "started_at": "2024-03-01T10:00:00Z",
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "id.twitch.tv":
            self.token_requests += 1
            if self.token_body is not None:
                return httpx.Response(self.token_status, content=self.token_body)
            return httpx.Response(
                self.token_status,
                json={
                    "access_token": f"token-{self.token_requests}",
                    "expires_in": 3600,
                    "token_type": "bearer",
                },
            )

        if self.api_status != 200:
            return httpx.Response(self.api_status, json={"error": "nope"})

        # Helix rejects more than 100 logins and pages /streams at 20 by default
        if request.url.path == "/helix/users":
            logins = request.url.params.get_list("login")
            if len(logins) > 100:
                return httpx.Response(400, json={"message": "too many logins"})
            data = [self.users[login] for login in logins if login in self.users]
        elif request.url.path == "/helix/streams":
            logins = request.url.params.get_list("user_login")
            first = int(request.url.params.get("first", 20))
            if len(logins) > 100 or first > 100:
                return httpx.Response(400, json={"message": "too many logins"})
            data = [self._stream(login, self.live[login]) for login in logins if login in self.live]
            data = data[:first]
        else:
            return httpx.Response(404)
        return httpx.Response(200, json={"data": data})

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


class RecordingNotifier:
    def __init__(self):
        self.shown = []

    def show(self, title, body):
        self.shown.append((title, body))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache_path(tmp_path):
    return tmp_path / "cache" / "cached_token.json"


@pytest.fixture
def cache(cache_path, clock):
    return TokenCache(cache_path, clock=clock)


@pytest.fixture
def twitch():
    return FakeTwitch()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def valid_token(clock):
    return AuthToken(
        client_id="cid",
        access_token="cached-token",
        expires_at=clock() + timedelta(hours=1),
    )
