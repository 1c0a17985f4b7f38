"""Timestamp parsing and formatting helpers."""

from datetime import datetime, timezone
from typing import Any


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any, fallback: datetime | None = None) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts ``datetime`` instances, ISO strings (including a trailing ``Z``)
    and epoch milliseconds. Anything unparsable yields ``fallback`` or the
    current time.

    :param value: Raw timestamp value
    :type value: Any
    :param fallback: Value returned when parsing fails
    :type fallback: datetime | None
    :return: Parsed timestamp
    :rtype: datetime
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            parsed = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return fallback or utc_now()
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return fallback or utc_now()
    else:
        return fallback or utc_now()

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso(value: datetime) -> str:
    """Format an aware datetime as ISO-8601 with a ``Z`` suffix."""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
