"""Logging setup."""

import logging
import sys

from sportsoracle.config import get_log_level

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str | int | None = None) -> None:
    """Configure root logging to stderr.

    Args:
        level: Level name or number; defaults to LOG_LEVEL from the environment
    """
    resolved = level if level is not None else get_log_level()
    root = logging.getLogger()
    root.setLevel(resolved)

    # Avoid stacking handlers when called more than once
    for handler in root.handlers:
        if getattr(handler, "_sportsoracle", False):
            return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    handler._sportsoracle = True  # type: ignore[attr-defined]
    root.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
