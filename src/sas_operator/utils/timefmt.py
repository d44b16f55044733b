"""Timestamp helpers."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

# RFC 3339 allows any number of fraction digits; fromisoformat before
# Python 3.11 accepts only 3 or 6
_FRACTION = re.compile(r"(?<=:\d\d)\.(\d+)")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_rfc3339(dt: datetime) -> str:
    """Format a datetime as a compact RFC 3339 UTC string (``2024-01-15T08:30:00Z``)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC 3339 timestamp into an aware datetime.

    Raises:
        ValueError: If the value is not a timestamp with an offset
    """
    if not isinstance(value, str):
        raise ValueError(f"expected a timestamp string, got {type(value).__name__}")
    normalized = value.strip().replace("Z", "+00:00").replace("z", "+00:00")
    normalized = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), normalized, count=1)
    parsed = datetime.fromisoformat(normalized)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp {value!r} has no UTC offset")
    return parsed


def format_friendly_duration(delta: timedelta) -> str:
    """Render a remaining duration like ``1h 30m left``."""
    total_seconds = int(delta.total_seconds())
    if total_seconds <= 0:
        return "expired"
    hours, remainder = divmod(total_seconds, 3600)
    minutes = remainder // 60

    if hours == 0:
        return f"{minutes}m left"
    if minutes == 0:
        return f"{hours}h left"
    return f"{hours}h {minutes}m left"
