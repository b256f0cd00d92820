from __future__ import annotations

import threading
from typing import Callable, Dict, Optional, TypeVar

from metricsreport.common.clock import Clock, default_clock
from metricsreport.common.models import MetricName, TimeUnit
from metricsreport.metrics import instruments
from metricsreport.metrics.base import Metric
from metricsreport.metrics.predicates import ALL, Predicate

M = TypeVar("M")


class MetricsRegistry:
    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._clock = clock or default_clock()
        self._metrics: Dict[MetricName, Metric] = {}
        self._lock = threading.Lock()

    def add(self, name: MetricName, metric: M) -> M:
        """Register ``metric`` under ``name``; an existing metric of the same kind wins."""
        with self._lock:
            existing = self._metrics.get(name)
            if existing is None:
                self._metrics[name] = metric  # type: ignore[assignment]
                return metric
        if existing.kind is not metric.kind:  # type: ignore[attr-defined]
            raise ValueError(
                f"Metric {name} already registered as {existing.kind.value}"
            )
        return existing  # type: ignore[return-value]

    def _get_or_add(self, name: MetricName, factory: Callable[[], Metric]) -> Metric:
        with self._lock:
            existing = self._metrics.get(name)
            if existing is None:
                existing = factory()
                self._metrics[name] = existing
            return existing

    def counter(self, name: MetricName) -> instruments.Counter:
        return self._checked(name, self._get_or_add(name, instruments.Counter), instruments.Counter)

    def gauge(self, name: MetricName, fn: Callable[[], object]) -> instruments.FunctionGauge:
        return self._checked(
            name,
            self._get_or_add(name, lambda: instruments.FunctionGauge(fn)),
            instruments.FunctionGauge,
        )

    def meter(
        self,
        name: MetricName,
        event_type: str = "events",
        rate_unit: TimeUnit = TimeUnit.SECONDS,
    ) -> instruments.Meter:
        return self._checked(
            name,
            self._get_or_add(
                name, lambda: instruments.Meter(event_type, rate_unit, self._clock)
            ),
            instruments.Meter,
        )

    def histogram(self, name: MetricName) -> instruments.Histogram:
        return self._checked(
            name, self._get_or_add(name, instruments.Histogram), instruments.Histogram
        )

    def timer(
        self,
        name: MetricName,
        duration_unit: TimeUnit = TimeUnit.MILLISECONDS,
        rate_unit: TimeUnit = TimeUnit.SECONDS,
    ) -> instruments.Timer:
        return self._checked(
            name,
            self._get_or_add(
                name, lambda: instruments.Timer(duration_unit, rate_unit, self._clock)
            ),
            instruments.Timer,
        )

    @staticmethod
    def _checked(name: MetricName, metric: object, expected: type) -> M:
        if not isinstance(metric, expected):
            raise ValueError(
                f"Metric {name} is a {type(metric).__name__}, not a {expected.__name__}"
            )
        return metric  # type: ignore[return-value]

    def remove(self, name: MetricName) -> Optional[Metric]:
        with self._lock:
            return self._metrics.pop(name, None)

    def all_metrics(self) -> Dict[MetricName, Metric]:
        with self._lock:
            return dict(self._metrics)

    def grouped_metrics(
        self, predicate: Predicate = ALL
    ) -> Dict[str, Dict[MetricName, Metric]]:
        """Matching metrics by group, groups and names in sorted order."""
        grouped: Dict[str, Dict[MetricName, Metric]] = {}
        for name, metric in sorted(self.all_metrics().items()):
            if not predicate(name, metric):
                continue
            grouped.setdefault(name.group, {})[name] = metric
        return grouped

    def __len__(self) -> int:
        with self._lock:
            return len(self._metrics)
