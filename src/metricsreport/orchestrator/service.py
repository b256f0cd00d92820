from __future__ import annotations

import logging
import os
import sys
import threading
import time
from dataclasses import dataclass, field
from typing import Optional, TextIO

from metricsreport.common.logging import setup_logging
from metricsreport.common.models import MetricName, TimeUnit
from metricsreport.common.settings import ReporterConfig, Settings, compute_config_hash
from metricsreport.metrics.instruments import Counter, Timer
from metricsreport.metrics.predicates import build_predicate
from metricsreport.metrics.registry import MetricsRegistry
from metricsreport.reporting.console import ConsoleReporter

SELF_GROUP = "metricsreport"


class _InstrumentedConsoleReporter(ConsoleReporter):
    def __init__(self, *args, cycles: Counter, cycle_timer: Timer, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._cycles = cycles
        self._cycle_timer = cycle_timer

    def run(self) -> None:
        with self._cycle_timer.time():
            super().run()
        self._cycles.inc()


@dataclass
class ReporterService:
    settings: Settings
    out: Optional[TextIO] = None
    period_sec: Optional[int] = None
    once: bool = False
    registry: MetricsRegistry = field(default_factory=MetricsRegistry)

    def run(self, *, max_ticks: Optional[int] = None) -> None:
        logger = setup_logging(self.settings.app_log_path, self.settings.log_level)
        config = ReporterConfig.from_settings(self.settings.raw)
        period_sec = self.period_sec or config.period_sec
        logger.info(
            "boot_start",
            extra={
                "config_version": self.settings.config_version,
                "config_hash": compute_config_hash(self.settings.config_path),
                "environment": self.settings.environment,
            },
        )
        self.register_process_gauges(self.registry)
        reporter = self.build_reporter(config, logger)
        try:
            if self.once:
                reporter.report()
                return
            reporter.start(period_sec, TimeUnit.SECONDS)
            logger.info("boot_complete", extra={"period_sec": period_sec})
            self._wait(reporter, period_sec, max_ticks)
        except KeyboardInterrupt:
            logger.info("shutdown_requested")
        finally:
            reporter.stop()

    def build_reporter(self, config: ReporterConfig, logger: logging.Logger) -> ConsoleReporter:
        predicate = build_predicate(
            groups=config.filter.groups,
            types=config.filter.types,
            name_pattern=config.filter.name_pattern,
        )
        return _InstrumentedConsoleReporter(
            self.registry,
            out=self.out if self.out is not None else sys.stdout,
            predicate=predicate,
            time_zone=config.time_zone,
            locale=config.locale,
            console_width=config.console_width,
            evict_absent_counters=config.evict_absent_counters,
            logger=logger,
            cycles=self.registry.counter(MetricName(SELF_GROUP, "reporter", "cycles")),
            cycle_timer=self.registry.timer(
                MetricName(SELF_GROUP, "reporter", "cycle-duration"),
                duration_unit=TimeUnit.MILLISECONDS,
            ),
        )

    @staticmethod
    def register_process_gauges(registry: MetricsRegistry) -> None:
        started = time.monotonic()
        registry.gauge(
            MetricName("process", "runtime", "uptime-seconds"),
            lambda: int(time.monotonic() - started),
        )
        registry.gauge(MetricName("process", "runtime", "thread-count"), threading.active_count)
        registry.gauge(MetricName("process", "runtime", "pid"), os.getpid)

    @staticmethod
    def _wait(reporter: ConsoleReporter, period_sec: int, max_ticks: Optional[int]) -> None:
        while max_ticks is None or reporter.completed_cycles + reporter.failed_cycles < max_ticks:
            time.sleep(min(1.0, float(period_sec)))
