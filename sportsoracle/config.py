"""Runtime configuration.

All settings come from environment variables with sensible defaults:
    SPORTS_ORACLE_DB: SQLite cache database path (default: ./sports-oracle.db)
    SPORTS_ORACLE_TIMEZONE: IANA display timezone (default: Asia/Manila)
    LOG_LEVEL: Root log level (default: INFO)
"""

import logging
import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path("./sports-oracle.db")
DEFAULT_TIMEZONE = "Asia/Manila"
DEFAULT_LOG_LEVEL = "INFO"


def get_db_path() -> Path:
    """Get the cache database path."""
    return Path(os.environ.get("SPORTS_ORACLE_DB", DEFAULT_DB_PATH))


def get_display_timezone_str() -> str:
    """Get the display timezone name (e.g., 'Asia/Manila')."""
    return os.environ.get("SPORTS_ORACLE_TIMEZONE", DEFAULT_TIMEZONE)


def get_display_timezone() -> ZoneInfo:
    """Get the display timezone, falling back to the default on bad config."""
    tz_name = get_display_timezone_str()
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("[CONFIG] Unknown timezone '%s', using %s", tz_name, DEFAULT_TIMEZONE)
        return ZoneInfo(DEFAULT_TIMEZONE)


def get_log_level() -> str:
    """Get the configured log level name."""
    return os.environ.get("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
