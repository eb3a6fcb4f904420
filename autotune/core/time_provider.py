"""
TimeProvider - injectable clock for the optimization and evaluation engines.

Every "now" the engines need (calculation windows, config names, evaluation
stamps, auto-disable timestamps) comes from a provider so that tests can pin
the clock instead of patching ``datetime``.

Usage (service)::

    provider = LiveTimeProvider()
    now = provider.now()        # datetime.now(UTC)

Usage (tests)::

    provider = SimulatedTimeProvider(start=datetime(2024, 1, 1, tzinfo=UTC))
    provider.advance(timedelta(hours=1))
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

UTC = timezone.utc


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on read)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class TimeProvider(ABC):
    """Abstract clock."""

    @abstractmethod
    def now(self) -> datetime:
        """Return current datetime (UTC)."""
        ...

    @abstractmethod
    def monotonic(self) -> float:
        """Return monotonic seconds, for measuring durations."""
        ...

    def timestamp(self) -> float:
        """Return UNIX timestamp for current time."""
        return self.now().timestamp()


class LiveTimeProvider(TimeProvider):
    """Reads the system clocks."""

    def now(self) -> datetime:
        return datetime.now(UTC)

    def monotonic(self) -> float:
        return time.monotonic()


class SimulatedTimeProvider(TimeProvider):
    """
    Manually driven clock.

    ``now()`` starts at ``start`` and only moves through ``advance()`` or
    ``set_time()``. ``monotonic()`` is the number of simulated seconds since
    ``start``.

    Args:
        start: Starting datetime. Defaults to 2020-01-01 00:00 UTC.
    """

    def __init__(self, start: datetime | None = None) -> None:
        if start is None:
            start = datetime(2020, 1, 1, tzinfo=UTC)
        self._current_time: datetime = ensure_utc(start)  # type: ignore[assignment]
        self._start_ts: float = self._current_time.timestamp()

    def now(self) -> datetime:
        return self._current_time

    def monotonic(self) -> float:
        return self._current_time.timestamp() - self._start_ts

    def advance(self, delta: timedelta) -> None:
        """Move the clock forward by a positive ``delta``."""
        if delta.total_seconds() <= 0:
            raise ValueError(f"advance() requires positive delta, got {delta}")
        self._current_time += delta

    def set_time(self, dt: datetime) -> None:
        """Jump to an absolute datetime."""
        self._current_time = ensure_utc(dt)  # type: ignore[assignment]
