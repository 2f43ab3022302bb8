"""Timezone utilities.

Single source of truth for all timezone operations.
Upstream instants are UTC; the dashboard displays a fixed timezone
(SPORTS_ORACLE_TIMEZONE, default Asia/Manila). Date keys use the
upstream's YYYYMMDD format.
"""

from datetime import UTC, date, datetime, timedelta

from dateutil import parser

from sportsoracle.config import get_display_timezone, get_display_timezone_str

__all__ = [
    "DATE_KEY_FORMAT",
    "get_display_timezone",
    "get_display_timezone_str",
    "now_display",
    "now_utc",
    "parse_instant",
    "to_display_tz",
    "to_utc",
    "format_date_key",
    "parse_date_key",
    "previous_date_key",
    "display_date_key",
]

DATE_KEY_FORMAT = "%Y%m%d"


def now_display() -> datetime:
    """Get current time in display timezone."""
    return datetime.now(get_display_timezone())


def now_utc() -> datetime:
    """Get current time in UTC."""
    return datetime.now(UTC)


def parse_instant(value: str) -> datetime:
    """Parse an upstream ISO-8601 instant (e.g. '2025-01-05T20:00Z').

    Naive values are taken as UTC.

    Raises:
        ValueError: if the string is not a parseable date
    """
    dt = parser.isoparse(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def to_display_tz(dt: datetime) -> datetime:
    """Convert any datetime to display timezone.

    Args:
        dt: Datetime to convert (must be timezone-aware)
    """
    if dt.tzinfo is None:
        raise ValueError("Cannot convert naive datetime - must be timezone-aware")
    return dt.astimezone(get_display_timezone())


def to_utc(dt: datetime) -> datetime:
    """Convert any datetime to UTC.

    Args:
        dt: Datetime to convert (must be timezone-aware)
    """
    if dt.tzinfo is None:
        raise ValueError("Cannot convert naive datetime - must be timezone-aware")
    return dt.astimezone(UTC)


def format_date_key(d: date | datetime) -> str:
    """Format a date as YYYYMMDD."""
    return d.strftime(DATE_KEY_FORMAT)


def parse_date_key(key: str) -> date:
    """Parse a YYYYMMDD key.

    Raises:
        ValueError: if the key is malformed
    """
    return datetime.strptime(key, DATE_KEY_FORMAT).date()


def previous_date_key(key: str) -> str:
    """The calendar day before a YYYYMMDD key."""
    return format_date_key(parse_date_key(key) - timedelta(days=1))


def display_date_key(dt: datetime) -> str:
    """YYYYMMDD of an instant as seen in the display timezone."""
    return format_date_key(to_display_tz(dt))
