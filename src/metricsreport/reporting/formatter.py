"""
Text rendering of a single metric.

Label spelling, alignment and line order are consumed by tools that scrape
console output, so they must stay stable.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Union

from babel import Locale, UnknownLocaleError, default_locale
from babel.numbers import format_decimal

from metricsreport.common.models import MetricKind, MetricName
from metricsreport.metrics.base import Counter, Gauge, Metered, Metric, Sampling, Timer
from metricsreport.reporting.deltas import CounterDeltaTracker
from metricsreport.reporting.units import abbreviate

FALLBACK_LOCALE = "en_US"

_GAUGE_WIDTH = 9
_COUNTER_WIDTH = 17
_WIDTH = 18
_PERCENTILE_WIDTH = 17

_PERCENTILES = (
    ("75%", "p75"),
    ("95%", "p95"),
    ("98%", "p98"),
    ("99%", "p99"),
    ("99.9%", "p999"),
)


def _line(label: str, value: str, width: int = _WIDTH) -> str:
    return f"{label:>{width}} = {value}"


class MetricFormatter:
    def __init__(
        self,
        locale: Union[Locale, str, None] = None,
        tracker: Optional[CounterDeltaTracker] = None,
    ) -> None:
        self._locale = resolve_locale(locale)
        self._tracker = tracker if tracker is not None else CounterDeltaTracker()
        self._dispatch: Dict[MetricKind, Callable[[MetricName, Metric], List[str]]] = {
            MetricKind.GAUGE: self._format_gauge,
            MetricKind.COUNTER: self._format_counter,
            MetricKind.METER: self._format_meter,
            MetricKind.HISTOGRAM: self._format_histogram,
            MetricKind.TIMER: self._format_timer,
        }

    @property
    def locale(self) -> Locale:
        return self._locale

    @property
    def tracker(self) -> CounterDeltaTracker:
        return self._tracker

    def format(self, name: MetricName, metric: Metric) -> List[str]:
        kind = getattr(metric, "kind", None)
        handler = self._dispatch.get(kind)  # type: ignore[arg-type]
        if handler is None:
            raise TypeError(f"Unsupported metric type for {name}: {type(metric).__name__}")
        return handler(name, metric)

    def decimal(self, value: float) -> str:
        return format_decimal(value, format="0.00", locale=self._locale)

    def integer(self, value: int) -> str:
        return format_decimal(int(value), format="#,##0", locale=self._locale)

    def _format_gauge(self, _name: MetricName, gauge: Gauge) -> List[str]:
        return [_line("value", str(gauge.value()), _GAUGE_WIDTH)]

    def _format_counter(self, name: MetricName, counter: Counter) -> List[str]:
        current = counter.count()
        interval = self._tracker.delta(name, current)
        return [
            _line("count", self.integer(current), _COUNTER_WIDTH),
            _line("intervalCount", self.integer(interval), _COUNTER_WIDTH),
        ]

    def _format_meter(self, _name: MetricName, meter: Metered) -> List[str]:
        unit = abbreviate(meter.rate_unit())
        event_type = meter.event_type()

        def rate(value: float) -> str:
            return f"{self.decimal(value)} {event_type}/{unit}"

        return [
            _line("count", self.integer(meter.count())),
            _line("mean rate", rate(meter.mean_rate())),
            _line("1-minute rate", rate(meter.one_minute_rate())),
            _line("5-minute rate", rate(meter.five_minute_rate())),
            _line("15-minute rate", rate(meter.fifteen_minute_rate())),
        ]

    def _format_histogram(self, _name: MetricName, histogram: Sampling) -> List[str]:
        return self._format_sampling(histogram, suffix="")

    def _format_timer(self, name: MetricName, timer: Timer) -> List[str]:
        lines = self._format_meter(name, timer)
        lines.extend(self._format_sampling(timer, suffix=abbreviate(timer.duration_unit())))
        return lines

    def _format_sampling(self, sampling: Sampling, *, suffix: str) -> List[str]:
        snapshot = sampling.snapshot()
        lines = [
            _line("min", self.decimal(sampling.min()) + suffix),
            _line("max", self.decimal(sampling.max()) + suffix),
            _line("mean", self.decimal(sampling.mean()) + suffix),
            _line("stddev", self.decimal(sampling.std_dev()) + suffix),
            _line("median", self.decimal(snapshot.median) + suffix),
        ]
        for label, attr in _PERCENTILES:
            value = self.decimal(getattr(snapshot, attr)) + suffix
            lines.append(f"{label:>{_PERCENTILE_WIDTH}} <= {value}")
        return lines


def resolve_locale(locale: Union[Locale, str, None]) -> Locale:
    if isinstance(locale, Locale):
        return locale
    if locale:
        return Locale.parse(locale.replace("-", "_"))
    system = default_locale()
    if system:
        try:
            return Locale.parse(system)
        except (UnknownLocaleError, ValueError):
            pass
    return Locale.parse(FALLBACK_LOCALE)
