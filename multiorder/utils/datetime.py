"""Timezone-aware clock helpers."""
from datetime import datetime, timezone
from typing import Callable, Optional


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes.

    SQLite drops tzinfo on round-trip; everything inside the domain is UTC.
    """
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO string written by ``isoformat()``."""
    if not value:
        return None
    return ensure_aware(datetime.fromisoformat(value))
