"""
Command-line entry point.

Usage:
    export TWITCH_CLIENT_ID=... TWITCH_CLIENT_SECRET=...
    stream-watcher somestreamer anotherstreamer
"""

import argparse
import sys

from .app import create_twitch_client, load_settings
from .utils.logger import get_logger, set_level
from .utils.notifier import Notifier
from .watcher import APP_NAME, StreamWatcher

logger = get_logger("main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stream-watcher",
        description="Desktop notifications when viewer counts change on Twitch streams",
    )
    parser.add_argument(
        "target_streams",
        nargs="+",
        metavar="LOGIN",
        help="space separated list of streams to watch",
    )
    return parser


def format_error_chain(error: BaseException) -> str:
    """One line for the error, then one per underlying cause."""
    lines = [f"Error: {error}"]
    seen = {id(error)}
    cause = error.__cause__ or error.__context__
    while cause is not None and id(cause) not in seen:
        seen.add(id(cause))
        lines.append(f"  Caused by: {cause}")
        cause = cause.__cause__ or cause.__context__
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings()
        set_level(settings.log_level)
        with create_twitch_client(settings) as client:
            watcher = StreamWatcher(client, Notifier(APP_NAME), args.target_streams)
            watcher.run()
    except KeyboardInterrupt:
        logger.info("Stopped")
        return 0
    except Exception as e:
        print(format_error_chain(e), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
