from datetime import datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a stored timestamp to aware UTC.

    SQLite hands back naive datetimes even for timezone-aware columns; those
    were written as UTC, so they are tagged rather than converted.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
