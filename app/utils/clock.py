"""
Time helpers: all stored timestamps are timezone-aware UTC
"""
from datetime import datetime, timezone


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime | None) -> datetime | None:
    """
    Treat naive datetimes as UTC.

    Drivers without timezone support (SQLite) hand TIMESTAMP WITH TIME ZONE
    columns back as naive values.
    """
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)
