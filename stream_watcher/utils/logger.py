"""
The "stream-watcher" logger.

Everything goes to stderr through one handler; modules log through child
loggers named after themselves, and main() picks the console level.
"""

import logging
import sys

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger("stream-watcher")
logger.setLevel(logging.DEBUG)

# Records are filtered at the handler so set_level() can change verbosity later
console_handler = logging.StreamHandler(sys.stderr)
console_handler.setLevel(logging.INFO)
console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))

# Re-imports must not stack a second handler
if not logger.handlers:
    logger.addHandler(console_handler)


def get_logger(name: str = "") -> logging.Logger:
    """Logger for one module, e.g. get_logger("watcher") -> stream-watcher.watcher."""
    if name:
        return logger.getChild(name)
    return logger


def set_level(level: str | int) -> None:
    """Set the console verbosity, e.g. "DEBUG" or logging.WARNING."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved
    console_handler.setLevel(level)
