"""
Viewer-count watcher.

Polls the streams endpoint on a fixed interval, compares each tracked
channel's viewer count with the previous poll and sends a notification for
every channel whose count changed.
"""

import time
from typing import Callable, Iterable, Mapping, Protocol, Sequence

from .utils.logger import get_logger
from .utils.twitch_client import StreamRecord, TrackedUser, TwitchClient

logger = get_logger("watcher")

APP_NAME = "stream watcher"
POLL_INTERVAL = 10.0  # seconds


class NotificationSink(Protocol):
    def show(self, title: str, body: str) -> None: ...


def build_snapshot(streams: Iterable[StreamRecord]) -> dict[str, int]:
    """Map user id to viewer count. Offline users are simply not in the map."""
    return {stream.user_id: stream.viewer_count for stream in streams}


def viewer_phrase(count: int) -> str:
    # "viewer" stays singular on purpose, users match on this text
    if count == 0:
        return "no viewer"
    return f"{count} viewer"


def startup_message(users: Sequence[TrackedUser], snapshot: Mapping[str, int]) -> str:
    lines = [
        f"{user.display_name} ({viewer_phrase(snapshot.get(user.id, 0))})"
        for user in users
    ]
    return "Start monitoring some streams !\n" + "\n".join(lines)


def changed_users(
    users: Mapping[str, TrackedUser],
    previous: Mapping[str, int],
    current: Mapping[str, int],
) -> list[TrackedUser]:
    """Users whose viewer count differs between two snapshots, by user id."""
    return [
        users[user_id]
        for user_id in sorted(users)
        if previous.get(user_id, 0) != current.get(user_id, 0)
    ]


class StreamWatcher:
    """
    Two phases: start() resolves the channels and announces the initial
    counts, then run() polls forever.

    Any error from the API client or the notifier propagates; there is no
    retry.
    """

    def __init__(
        self,
        client: TwitchClient,
        notifier: NotificationSink,
        logins: Sequence[str],
        interval: float = POLL_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.notifier = notifier
        self.logins = list(logins)
        self.interval = interval
        self._sleep = sleep
        self.users: dict[str, TrackedUser] = {}
        self.previous: dict[str, int] = {}

    def start(self) -> None:
        """Resolve users, take the first snapshot and send the startup notification."""
        resolved = self.client.resolve_users(self.logins)
        logger.debug(f"Resolved users: {resolved}")

        found = {user.login.lower() for user in resolved}
        for login in self.logins:
            if login.lower() not in found:
                logger.warning(f"No Twitch user found for login '{login}', ignoring it")

        self.users = {user.id: user for user in resolved}
        self.previous = build_snapshot(self.client.fetch_streams(self.logins))
        logger.debug(f"Viewer counts: {self.previous}")

        message = startup_message(resolved, self.previous)
        logger.debug(f"Startup message: {message}")
        self.notifier.show(APP_NAME, message)
        logger.info(f"Monitoring {len(self.users)} stream(s), polling every {self.interval:g}s")

    def poll_once(self) -> list[TrackedUser]:
        """Fetch a new snapshot, notify about every change and keep it as previous."""
        current = build_snapshot(self.client.fetch_streams(self.logins))

        changed = changed_users(self.users, self.previous, current)
        for user in changed:
            count = current.get(user.id, 0)
            logger.debug(f"Viewer count for {user.display_name}: {count}")
            self.notifier.show(user.display_name, f"Updated viewer count: {count}")

        self.previous = current
        return changed

    def run(self) -> None:
        """Run the startup phase, then poll until something fails."""
        self.start()
        while True:
            self._sleep(self.interval)
            self.poll_once()
