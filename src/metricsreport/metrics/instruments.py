"""
In-process metric implementations.

These are intentionally small: they keep enough state to answer the read-only
accessors in ``metricsreport.metrics.base`` and nothing else. All of them are
safe to update from multiple threads.
"""

from __future__ import annotations

import math
import random
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional

from metricsreport.common.clock import Clock, default_clock
from metricsreport.common.models import TimeUnit
from metricsreport.metrics import base

TICK_INTERVAL_NS = 5_000_000_000
_TICK_INTERVAL_SEC = TICK_INTERVAL_NS / 1e9
DEFAULT_RESERVOIR_SIZE = 1028


class Counter(base.Counter):
    def __init__(self) -> None:
        self._count = 0
        self._lock = threading.Lock()

    def inc(self, n: int = 1) -> None:
        with self._lock:
            self._count += int(n)

    def dec(self, n: int = 1) -> None:
        with self._lock:
            self._count -= int(n)

    def clear(self) -> None:
        with self._lock:
            self._count = 0

    def count(self) -> int:
        with self._lock:
            return self._count


class FunctionGauge(base.Gauge):
    def __init__(self, fn: Callable[[], Any]) -> None:
        self._fn = fn

    def value(self) -> Any:
        return self._fn()


class EWMA:
    """Exponentially-weighted moving average of a per-second event rate."""

    def __init__(self, minutes: int) -> None:
        self._alpha = 1.0 - math.exp(-_TICK_INTERVAL_SEC / 60.0 / minutes)
        self._uncounted = 0
        self._rate = 0.0
        self._initialized = False

    def update(self, n: int) -> None:
        self._uncounted += n

    def tick(self) -> None:
        count, self._uncounted = self._uncounted, 0
        instant_rate = count / _TICK_INTERVAL_SEC
        if self._initialized:
            self._rate += self._alpha * (instant_rate - self._rate)
        else:
            self._rate = instant_rate
            self._initialized = True

    def rate_per_second(self) -> float:
        return self._rate


class Meter(base.Metered):
    def __init__(
        self,
        event_type: str = "events",
        rate_unit: TimeUnit = TimeUnit.SECONDS,
        clock: Optional[Clock] = None,
    ) -> None:
        self._event_type = event_type
        self._rate_unit = rate_unit
        self._clock = clock or default_clock()
        self._lock = threading.Lock()
        self._count = 0
        self._start_ns = self._clock.tick_ns()
        self._last_tick_ns = self._start_ns
        self._m1 = EWMA(1)
        self._m5 = EWMA(5)
        self._m15 = EWMA(15)

    def mark(self, n: int = 1) -> None:
        with self._lock:
            self._tick_if_necessary()
            self._count += n
            self._m1.update(n)
            self._m5.update(n)
            self._m15.update(n)

    def _tick_if_necessary(self) -> None:
        now = self._clock.tick_ns()
        age = now - self._last_tick_ns
        if age <= TICK_INTERVAL_NS:
            return
        self._last_tick_ns = now - age % TICK_INTERVAL_NS
        for _ in range(age // TICK_INTERVAL_NS):
            self._m1.tick()
            self._m5.tick()
            self._m15.tick()

    def _scaled(self, ewma: EWMA) -> float:
        with self._lock:
            self._tick_if_necessary()
            return ewma.rate_per_second() * self._rate_unit.seconds

    def count(self) -> int:
        with self._lock:
            return self._count

    def event_type(self) -> str:
        return self._event_type

    def rate_unit(self) -> TimeUnit:
        return self._rate_unit

    def mean_rate(self) -> float:
        with self._lock:
            if self._count == 0:
                return 0.0
            elapsed_sec = (self._clock.tick_ns() - self._start_ns) / 1e9
            if elapsed_sec <= 0:
                return 0.0
            return self._count / elapsed_sec * self._rate_unit.seconds

    def one_minute_rate(self) -> float:
        return self._scaled(self._m1)

    def five_minute_rate(self) -> float:
        return self._scaled(self._m5)

    def fifteen_minute_rate(self) -> float:
        return self._scaled(self._m15)


class Histogram(base.Histogram):
    def __init__(
        self,
        reservoir_size: int = DEFAULT_RESERVOIR_SIZE,
        rng: Optional[random.Random] = None,
    ) -> None:
        if reservoir_size < 1:
            raise ValueError("reservoir_size must be >= 1")
        self._reservoir_size = reservoir_size
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        self.clear()

    def clear(self) -> None:
        with self._lock:
            self._values: List[float] = []
            self._count = 0
            self._min = math.inf
            self._max = -math.inf
            self._mean = 0.0
            self._m2 = 0.0

    def update(self, value: float) -> None:
        value = float(value)
        with self._lock:
            self._count += 1
            # uniform reservoir sampling (Vitter's algorithm R)
            if len(self._values) < self._reservoir_size:
                self._values.append(value)
            else:
                idx = self._rng.randrange(self._count)
                if idx < self._reservoir_size:
                    self._values[idx] = value
            self._min = min(self._min, value)
            self._max = max(self._max, value)
            delta = value - self._mean
            self._mean += delta / self._count
            self._m2 += delta * (value - self._mean)

    def count(self) -> int:
        with self._lock:
            return self._count

    def min(self) -> float:
        with self._lock:
            return self._min if self._count else 0.0

    def max(self) -> float:
        with self._lock:
            return self._max if self._count else 0.0

    def mean(self) -> float:
        with self._lock:
            return self._mean if self._count else 0.0

    def std_dev(self) -> float:
        with self._lock:
            if self._count <= 1:
                return 0.0
            return math.sqrt(self._m2 / (self._count - 1))

    def snapshot(self) -> base.Snapshot:
        with self._lock:
            return base.Snapshot.of(self._values)


class Timer(base.Timer):
    def __init__(
        self,
        duration_unit: TimeUnit = TimeUnit.MILLISECONDS,
        rate_unit: TimeUnit = TimeUnit.SECONDS,
        clock: Optional[Clock] = None,
    ) -> None:
        self._duration_unit = duration_unit
        self._clock = clock or default_clock()
        self._meter = Meter("calls", rate_unit, self._clock)
        self._histogram = Histogram()

    def update(self, duration: float, unit: TimeUnit) -> None:
        if duration < 0:
            return
        self._histogram.update(self._duration_unit.convert(duration, unit))
        self._meter.mark()

    @contextmanager
    def time(self) -> Iterator[None]:
        started = self._clock.tick_ns()
        try:
            yield
        finally:
            self.update(self._clock.tick_ns() - started, TimeUnit.NANOSECONDS)

    def duration_unit(self) -> TimeUnit:
        return self._duration_unit

    def count(self) -> int:
        return self._meter.count()

    def event_type(self) -> str:
        return self._meter.event_type()

    def rate_unit(self) -> TimeUnit:
        return self._meter.rate_unit()

    def mean_rate(self) -> float:
        return self._meter.mean_rate()

    def one_minute_rate(self) -> float:
        return self._meter.one_minute_rate()

    def five_minute_rate(self) -> float:
        return self._meter.five_minute_rate()

    def fifteen_minute_rate(self) -> float:
        return self._meter.fifteen_minute_rate()

    def min(self) -> float:
        return self._histogram.min()

    def max(self) -> float:
        return self._histogram.max()

    def mean(self) -> float:
        return self._histogram.mean()

    def std_dev(self) -> float:
        return self._histogram.std_dev()

    def snapshot(self) -> base.Snapshot:
        return self._histogram.snapshot()
