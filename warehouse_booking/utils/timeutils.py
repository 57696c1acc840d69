from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current instant, timezone-aware UTC"""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalise a datetime to aware UTC.

    Naive values are read as UTC; SQLite hands back naive datetimes even
    for timezone-aware columns.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
