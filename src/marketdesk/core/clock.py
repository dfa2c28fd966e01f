"""Calendar date provider and timestamp normalisation."""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
from typing import Protocol


class Clock(Protocol):
    """Source of the current instant, injected into the cache services."""

    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Clock pinned to a given instant."""

    def __init__(self, instant: datetime | date) -> None:
        if not isinstance(instant, datetime):
            instant = datetime.combine(instant, time(12, 0), tzinfo=UTC)
        elif instant.tzinfo is None:
            instant = instant.replace(tzinfo=UTC)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def today(self) -> date:
        return self._instant.astimezone(UTC).date()


def normalize_timestamp(value: str | datetime) -> datetime:
    """Convert an ISO-8601 string or datetime to naive UTC at second precision.

    Naive inputs are taken to be UTC already.

    Raises:
        ValueError: If the string is not a valid ISO-8601 timestamp.
        TypeError: If the value is neither a string nor a datetime.
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    elif not isinstance(value, datetime):
        raise TypeError(f"Cannot normalize {type(value).__name__} as a timestamp")
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value.replace(microsecond=0)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Return the half-open naive UTC range ``[start, end)`` covering ``day``."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)
