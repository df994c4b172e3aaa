"""
UTC date helpers shared by intake validation, quota and maintenance jobs.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

_STRICT_ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """Format as `YYYY-MM-DDTHH:MM:SS.sssZ` (the format clients submit)."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def today_utc(now: Optional[datetime] = None) -> str:
    """Current UTC calendar day as `YYYY-MM-DD`."""
    return (now or utc_now()).astimezone(timezone.utc).strftime("%Y-%m-%d")


def is_valid_iso8601(value: Any) -> bool:
    """
    Strict check for `YYYY-MM-DDTHH:MM:SS.sssZ` that is also a real calendar instant.

    "2024-02-30T10:00:00.000Z" matches the shape but is rejected.
    """
    if not isinstance(value, str) or not _STRICT_ISO_RE.match(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%dT%H:%M:%S.%fZ")
    except ValueError:
        return False
    return True


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Lenient parser for stored timestamps.

    Accepts datetimes, ISO-8601 strings with or without offset (naive values
    are taken as UTC) and bare `YYYY-MM-DD` dates. Returns None when the
    value cannot be interpreted.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def is_same_utc_day(value: Any, now: Optional[datetime] = None) -> bool:
    parsed = parse_timestamp(value)
    if parsed is None:
        return False
    return parsed.strftime("%Y-%m-%d") == today_utc(now)


def is_date_today_utc(value: str, now: Optional[datetime] = None) -> bool:
    """True when a strict ISO timestamp falls on the current UTC calendar day."""
    return is_valid_iso8601(value) and is_same_utc_day(value, now)


def window_start(days: int, now: Optional[datetime] = None) -> datetime:
    return (now or utc_now()) - timedelta(days=days)


def is_within_window(value: Any, days: int, now: Optional[datetime] = None) -> bool:
    """True when `value` is at or after `now - days` (the boundary itself counts)."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return False
    return parsed >= window_start(days, now)


def start_of_next_day(now: Optional[datetime] = None) -> datetime:
    current = (now or utc_now()).astimezone(timezone.utc)
    midnight = current.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight + timedelta(days=1)
