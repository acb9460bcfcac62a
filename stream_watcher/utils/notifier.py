"""
Desktop notifications.

Cross-platform: uses notify-send on Linux and osascript on macOS.
"""

import platform
import shutil
import subprocess

from .logger import get_logger

logger = get_logger("notifier")


class NotificationError(Exception):
    """The notification could not be shown."""


def _applescript_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _notify_command(app_name: str, title: str, body: str) -> list[str]:
    """
    Build the command that shows a notification on this platform.

    Raises:
        NotificationError: if no supported notification tool is available.
    """
    system = platform.system()

    if system == "Linux":
        if shutil.which("notify-send"):
            return ["notify-send", f"--app-name={app_name}", "--", title, body]
        raise NotificationError("notify-send not found (install libnotify)")

    if system == "Darwin":  # macOS
        script = (
            f"display notification {_applescript_string(body)} "
            f"with title {_applescript_string(title)} "
            f"subtitle {_applescript_string(app_name)}"
        )
        return ["osascript", "-e", script]

    raise NotificationError(f"Desktop notifications not supported on {system}")


class Notifier:
    """Fire-and-forget desktop notification sink."""

    def __init__(self, app_name: str = "stream watcher"):
        self.app_name = app_name

    def show(self, title: str, body: str) -> None:
        cmd = _notify_command(self.app_name, title, body)
        logger.debug(f"Notification: {title!r} / {body!r}")
        try:
            subprocess.run(cmd, check=True, capture_output=True, text=True, timeout=10)
        except subprocess.CalledProcessError as e:
            raise NotificationError(
                f"{cmd[0]} exited with {e.returncode}: {e.stderr.strip()}"
            ) from e
        except (OSError, subprocess.TimeoutExpired) as e:
            raise NotificationError(f"Could not run {cmd[0]}: {e}") from e
