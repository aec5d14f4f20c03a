"""Time Utilities - UTC timestamps and formatting"""
from datetime import datetime, timezone
from typing import Optional
from dateutil import parser as date_parser


def utc_now() -> datetime:
    """Get current UTC datetime"""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes, convert aware ones to UTC"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_iso(dt: datetime) -> str:
    """
    Format datetime to ISO 8601 string

    Args:
        dt: Datetime object

    Returns:
        ISO formatted string with Z suffix for UTC
    """
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")


def parse_iso(iso_string: str) -> datetime:
    """
    Parse ISO 8601 string to datetime

    Args:
        iso_string: ISO formatted datetime string

    Returns:
        Datetime object in UTC
    """
    return ensure_utc(date_parser.isoparse(iso_string))


def format_duration(seconds: int) -> str:
    """
    Format a duration in seconds to a human readable string

    Args:
        seconds: Duration in seconds

    Returns:
        Human readable string (e.g., "45s", "12m", "2h 30m", "1d 4h")
    """
    if seconds < 0:
        return f"-{format_duration(-seconds)}"

    if seconds < 60:
        return f"{seconds}s"

    if seconds < 3600:
        return f"{seconds // 60}m"

    if seconds < 86400:
        return f"{seconds // 3600}h {(seconds % 3600) // 60}m"

    return f"{seconds // 86400}d {(seconds % 86400) // 3600}h"


def format_time_ago(seconds: int) -> str:
    """Format seconds elapsed since an event ("3 hours ago")"""
    if seconds < 60:
        return "just now"

    buckets = (
        (31536000, "year"),
        (2592000, "month"),
        (604800, "week"),
        (86400, "day"),
        (3600, "hour"),
        (60, "minute"),
    )
    for size, unit in buckets:
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return "just now"
