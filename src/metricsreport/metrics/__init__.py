from metricsreport.metrics.base import (
    Counter,
    Gauge,
    Histogram,
    Metered,
    Metric,
    Snapshot,
    Timer,
)
from metricsreport.metrics.predicates import ALL, Predicate, build_predicate
from metricsreport.metrics.registry import MetricsRegistry

__all__ = [
    "ALL",
    "Counter",
    "Gauge",
    "Histogram",
    "Metered",
    "Metric",
    "MetricsRegistry",
    "Predicate",
    "Snapshot",
    "Timer",
    "build_predicate",
]
