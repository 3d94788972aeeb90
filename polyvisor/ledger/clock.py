"""Clocks that stamp admissions.

Timestamps are integer milliseconds. Proof references are derived from
admission timestamps, so stamp() is strictly increasing on every clock
here. now() is a side-effect-free reading used by read paths.
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Source of timestamps (milliseconds)."""

    def now(self) -> int:
        """Current time without consuming a timestamp."""
        ...

    def stamp(self) -> int:
        """Unique, strictly increasing timestamp for a state transition."""
        ...


class LogicalClock:
    """Deterministic counter clock for replays and tests.

    stamp() returns the current time and then moves it forward by `step`.
    """

    def __init__(self, start: int = 0, step: int = 1):
        if step <= 0:
            raise ValueError("step must be positive")
        self._current = start
        self.step = step

    def now(self) -> int:
        return self._current

    def stamp(self) -> int:
        value = self._current
        self._current += self.step
        return value

    def advance(self, millis: int) -> None:
        """Move the clock forward without producing a timestamp."""
        if millis < 0:
            raise ValueError("cannot move a logical clock backwards")
        self._current += millis


class BlockClock:
    """Wall-clock milliseconds, bumped by one on ties."""

    def __init__(self) -> None:
        self._last = -1

    def now(self) -> int:
        return max(time.time_ns() // 1_000_000, self._last)

    def stamp(self) -> int:
        value = max(time.time_ns() // 1_000_000, self._last + 1)
        self._last = value
        return value


__all__ = ["BlockClock", "Clock", "LogicalClock"]
