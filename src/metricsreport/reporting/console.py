from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone, tzinfo
from typing import Optional, TextIO, Union
from zoneinfo import ZoneInfo

from babel import Locale
from babel.dates import format_date, format_time, get_datetime_format

from metricsreport.common.clock import Clock, default_clock
from metricsreport.common.models import TimeUnit
from metricsreport.metrics.predicates import ALL, Predicate
from metricsreport.metrics.registry import MetricsRegistry
from metricsreport.reporting.deltas import CounterDeltaTracker
from metricsreport.reporting.formatter import MetricFormatter
from metricsreport.reporting.polling import PollingReporter

CONSOLE_WIDTH = 80


class ConsoleReporter(PollingReporter):
    """Prints every matching metric to a text stream, one section per group."""

    @classmethod
    def enable(
        cls,
        registry: MetricsRegistry,
        period: float,
        unit: TimeUnit = TimeUnit.SECONDS,
        **kwargs,
    ) -> "ConsoleReporter":
        reporter = cls(registry, out=sys.stdout, **kwargs)
        reporter.start(period, unit)
        return reporter

    def __init__(
        self,
        registry: MetricsRegistry,
        out: Optional[TextIO] = None,
        predicate: Predicate = ALL,
        clock: Optional[Clock] = None,
        time_zone: Union[tzinfo, str, None] = None,
        locale: Union[Locale, str, None] = None,
        console_width: int = CONSOLE_WIDTH,
        evict_absent_counters: bool = False,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(registry, "console-reporter", logger=logger)
        self._out = out if out is not None else sys.stdout
        self._predicate = predicate
        self._clock = clock or default_clock()
        self._time_zone = resolve_time_zone(time_zone)
        self._console_width = console_width
        self._evict_absent_counters = evict_absent_counters
        self._formatter = MetricFormatter(locale, CounterDeltaTracker())

    @property
    def formatter(self) -> MetricFormatter:
        return self._formatter

    @property
    def time_zone(self) -> Optional[tzinfo]:
        return self._time_zone

    def header(self) -> str:
        now = datetime.fromtimestamp(self._clock.time_ms() / 1000.0, tz=timezone.utc)
        date_time = format_date_time(now, self._time_zone, self._formatter.locale)
        padding = max(0, self._console_width - len(date_time) - 1)
        return f"{date_time} {'=' * padding}"

    def run(self) -> None:
        out = self._out
        out.write(self.header() + "\n")
        grouped = self._registry.grouped_metrics(self._predicate)
        for group, metrics in grouped.items():
            out.write(f"{group}:\n")
            for name, metric in metrics.items():
                out.write(f"  {name.name}:\n")
                for line in self._formatter.format(name, metric):
                    out.write(line + "\n")
                out.write("\n")
            out.write("\n")
        out.write("\n")
        out.flush()
        if self._evict_absent_counters:
            seen = [name for metrics in grouped.values() for name in metrics]
            evicted = self._formatter.tracker.retain(seen)
            if evicted:
                self._logger.debug(
                    "counter_state_evicted", extra={"reporter": self.name, "evicted": evicted}
                )


def resolve_time_zone(time_zone: Union[tzinfo, str, None]) -> Optional[tzinfo]:
    """Returns None for the host's local zone, which is looked up per timestamp."""
    if isinstance(time_zone, tzinfo):
        return time_zone
    if time_zone:
        return ZoneInfo(time_zone)
    return None


def format_date_time(moment: datetime, time_zone: Optional[tzinfo], locale: Locale) -> str:
    """Short date plus medium time, joined the way the locale joins them."""
    # astimezone(None) picks the local offset in force at ``moment``
    local_moment = moment.astimezone(time_zone)
    date_part = format_date(local_moment, format="short", locale=locale)
    time_part = format_time(local_moment, format="medium", tzinfo=local_moment.tzinfo, locale=locale)
    pattern = get_datetime_format("short", locale=locale)
    return pattern.replace("{1}", date_part).replace("{0}", time_part).replace("'", "")
