from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def time_ms(self) -> int:
        """Wall-clock time in epoch milliseconds."""

    def tick_ns(self) -> int:
        """Monotonic nanoseconds, only meaningful as a difference."""


class SystemClock:
    def time_ms(self) -> int:
        return int(time.time() * 1000)

    def tick_ns(self) -> int:
        return time.monotonic_ns()


_DEFAULT_CLOCK = SystemClock()


def default_clock() -> Clock:
    return _DEFAULT_CLOCK
