"""
Injectable time source.

Services never call ``datetime.now()``; they stamp ``updated_at``,
``closed_at``, reconciliation ``reconciled_at`` and checklist
``executed_at`` from the clock they were built with.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Timezone-aware current time."""


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Fixed clock for tests and replays.

    Starts at 2025-01-01 12:00 UTC unless told otherwise and only moves when
    ``advance()`` is called.
    """

    def __init__(self, start: datetime | None = None):
        self._now = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float = 1) -> datetime:
        self._now += timedelta(seconds=seconds)
        return self._now
