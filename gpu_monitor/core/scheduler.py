"""Refresh cadence state machine."""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from enum import Enum
from typing import TypeVar

T = TypeVar("T")


class SchedulerState(str, Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


class RefreshScheduler:
    """Decides when a refresh is due and tracks whether one is running.

    The last refresh starts at minus infinity so the very first check is
    always due. Only successful refreshes move the timestamp.
    """

    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic) -> None:
        if interval < 0:
            raise ValueError("refresh interval must not be negative")
        self.interval = interval
        self._clock = clock
        self._last_refresh = -math.inf
        self.state = SchedulerState.IDLE

    @property
    def last_refresh(self) -> float:
        return self._last_refresh

    def is_due(self, now: float | None = None) -> bool:
        if now is None:
            now = self._clock()
        return now - self._last_refresh >= self.interval

    def time_until_due(self, now: float | None = None) -> float:
        if now is None:
            now = self._clock()
        return max(0.0, self.interval - (now - self._last_refresh))

    def run(self, refresh: Callable[[], T]) -> T:
        """Run ``refresh`` in the REFRESHING state and return to IDLE afterwards."""

        self.state = SchedulerState.REFRESHING
        try:
            result = refresh()
            self._last_refresh = self._clock()
            return result
        finally:
            self.state = SchedulerState.IDLE
