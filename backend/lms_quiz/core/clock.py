"""Time source for quiz timing.

All timestamps stored by the service are naive UTC datetimes. Code that needs
"now" takes a ``Clock`` instead of calling ``datetime`` directly so tests can
move time across a quiz deadline deterministically.
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta


class Clock(ABC):
    """Source of the current UTC time."""

    @abstractmethod
    def now(self) -> datetime:
        """Current time as a naive UTC datetime."""


class SystemClock(Clock):
    """Wall-clock time."""

    def now(self) -> datetime:
        return datetime.now(UTC).replace(tzinfo=None)


class FrozenClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, current: datetime | None = None):
        self._current = to_naive_utc(current) if current else SystemClock().now()

    def now(self) -> datetime:
        return self._current

    def set(self, value: datetime) -> None:
        self._current = to_naive_utc(value)

    def advance(self, **kwargs: float) -> datetime:
        """Move forward by a ``timedelta(**kwargs)`` and return the new time."""
        self._current = self._current + timedelta(**kwargs)
        return self._current


def to_naive_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive values are assumed UTC."""
    if value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None)
    return value


_system_clock = SystemClock()


def get_clock() -> Clock:
    """FastAPI dependency returning the process clock."""
    return _system_clock
