"""Time counter supplied to the registry by its host.

The registry never reads wall-clock time directly.  Issue times,
expiries, delegation windows and verification timestamps are all values
of one monotonically non-decreasing counter owned by the host process.

  SystemClock: whole epoch seconds, clamped so it never goes backwards
                when the system clock is stepped (NTP corrections).
  ManualClock: a counter that only moves when advanced explicitly.
                Tests inject it through the get_clock dependency; the
                service itself always runs on SystemClock, since nothing
                in a deployment could drive a manual counter.
"""

from __future__ import annotations

import datetime
import threading
from typing import Protocol, runtime_checkable



@runtime_checkable
class Clock(Protocol):
    def now(self) -> int: ...


class SystemClock:
    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        current = int(datetime.datetime.now(datetime.UTC).timestamp())
        with self._lock:
            if current > self._last:
                self._last = current
            return self._last


class ManualClock:
    def __init__(self, start: int = 0) -> None:
        if start < 0:
            raise ValueError("start must be non-negative")
        self._value = start

    def now(self) -> int:
        return self._value

    def advance(self, ticks: int = 1) -> int:
        if ticks < 0:
            raise ValueError("the time counter cannot move backwards")
        self._value += ticks
        return self._value

    def set(self, value: int) -> None:
        if value < self._value:
            raise ValueError(
                f"the time counter cannot move backwards ({value} < {self._value})"
            )
        self._value = value


clock: Clock = SystemClock()
