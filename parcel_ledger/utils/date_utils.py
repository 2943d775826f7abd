"""Date manipulation utilities"""

from datetime import date, datetime, timezone
from typing import Sequence


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def is_strictly_increasing(dates: Sequence[date]) -> bool:
    """True when every date is later than the one before it."""
    return all(earlier < later for earlier, later in zip(dates, dates[1:]))


def as_naive_utc(value: datetime | None) -> datetime | None:
    """Normalize an aware datetime to naive UTC; naive values are assumed UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
