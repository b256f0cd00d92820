"""
Metric variants consumed by reporters.

The set of variants is closed: every metric carries a ``kind`` tag and
reporters dispatch on it. Implementations only expose already-computed values;
nothing here is allowed to mutate registry state when read.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Iterable, Tuple, Union

from metricsreport.common.models import MetricKind, TimeUnit


@dataclass(frozen=True)
class Snapshot:
    values: Tuple[float, ...]

    @staticmethod
    def of(values: Iterable[float]) -> "Snapshot":
        return Snapshot(values=tuple(sorted(float(v) for v in values)))

    def value(self, quantile: float) -> float:
        if math.isnan(quantile) or quantile < 0.0 or quantile > 1.0:
            raise ValueError(f"{quantile} is not in [0..1]")
        if not self.values:
            return 0.0

        pos = quantile * (len(self.values) + 1)
        if pos < 1:
            return self.values[0]
        if pos >= len(self.values):
            return self.values[-1]

        lower = self.values[int(pos) - 1]
        upper = self.values[int(pos)]
        return lower + (pos - math.floor(pos)) * (upper - lower)

    @property
    def median(self) -> float:
        return self.value(0.5)

    @property
    def p75(self) -> float:
        return self.value(0.75)

    @property
    def p95(self) -> float:
        return self.value(0.95)

    @property
    def p98(self) -> float:
        return self.value(0.98)

    @property
    def p99(self) -> float:
        return self.value(0.99)

    @property
    def p999(self) -> float:
        return self.value(0.999)

    def __len__(self) -> int:
        return len(self.values)


class Gauge(ABC):
    kind: ClassVar[MetricKind] = MetricKind.GAUGE

    @abstractmethod
    def value(self) -> Any:
        ...


class Counter(ABC):
    kind: ClassVar[MetricKind] = MetricKind.COUNTER

    @abstractmethod
    def count(self) -> int:
        ...


class Metered(ABC):
    kind: ClassVar[MetricKind] = MetricKind.METER

    @abstractmethod
    def count(self) -> int:
        ...

    @abstractmethod
    def event_type(self) -> str:
        ...

    @abstractmethod
    def rate_unit(self) -> TimeUnit:
        ...

    @abstractmethod
    def mean_rate(self) -> float:
        ...

    @abstractmethod
    def one_minute_rate(self) -> float:
        ...

    @abstractmethod
    def five_minute_rate(self) -> float:
        ...

    @abstractmethod
    def fifteen_minute_rate(self) -> float:
        ...


class Sampling(ABC):
    """Distribution summary shared by histograms and timers."""

    @abstractmethod
    def min(self) -> float:
        ...

    @abstractmethod
    def max(self) -> float:
        ...

    @abstractmethod
    def mean(self) -> float:
        ...

    @abstractmethod
    def std_dev(self) -> float:
        ...

    @abstractmethod
    def snapshot(self) -> Snapshot:
        ...


class Histogram(Sampling):
    kind: ClassVar[MetricKind] = MetricKind.HISTOGRAM


class Timer(Metered, Sampling):
    kind: ClassVar[MetricKind] = MetricKind.TIMER

    @abstractmethod
    def duration_unit(self) -> TimeUnit:
        ...


Metric = Union[Gauge, Counter, Metered, Histogram, Timer]

METRIC_TYPES: dict[MetricKind, type] = {
    MetricKind.GAUGE: Gauge,
    MetricKind.COUNTER: Counter,
    MetricKind.METER: Metered,
    MetricKind.HISTOGRAM: Histogram,
    MetricKind.TIMER: Timer,
}
