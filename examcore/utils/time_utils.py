"""Time utilities."""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Get current UTC timestamp as ISO string."""
    return utc_now().isoformat()


def ensure_aware(value: datetime | None) -> datetime | None:
    """
    Normalize to an aware UTC datetime.

    Naive values are taken as UTC (SQLite drops tzinfo on read); aware values
    are converted, since the offset is not stored.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
