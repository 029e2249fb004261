"""Time source abstraction.

Production code reads the wall clock through :class:`SystemClock`;
tests and back-fill runs pin time with :class:`FakeClock`.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FakeClock:
    """Manually driven clock.

    Starts at *start* (default: the Unix epoch, UTC) and only moves when
    :meth:`set` or :meth:`add` is called.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._now = _ensure_aware(start or datetime(1970, 1, 1, tzinfo=UTC))

    def now(self) -> datetime:
        return self._now

    def set(self, value: datetime) -> None:
        self._now = _ensure_aware(value)

    def add(self, delta: timedelta) -> datetime:
        self._now += delta
        return self._now


def _ensure_aware(value: datetime) -> datetime:
    # Naive datetimes are taken to be UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
