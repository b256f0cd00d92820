import logging
import time
from datetime import timezone

import pytest

from metricsreport.common.models import MetricName, TimeUnit
from metricsreport.metrics import base
from metricsreport.reporting.console import ConsoleReporter
from metricsreport.reporting.errors import ReporterStateError
from metricsreport.reporting.polling import LifecycleState

LOGGER = logging.getLogger("test_console_reporter")


class BrokenMeter(base.Metered):
    """A meter whose rate unit cannot be displayed."""

    def count(self) -> int:
        return 1

    def event_type(self) -> str:
        return "events"

    def rate_unit(self) -> TimeUnit:
        return TimeUnit.MINUTES

    def mean_rate(self) -> float:
        return 0.0

    one_minute_rate = five_minute_rate = fifteen_minute_rate = mean_rate


def _reporter(registry, sink, clock, **kwargs) -> ConsoleReporter:
    kwargs.setdefault("time_zone", "UTC")
    kwargs.setdefault("locale", "en_US")
    return ConsoleReporter(registry, out=sink, clock=clock, logger=LOGGER, **kwargs)


def _body(output: str) -> list[str]:
    return output.split("\n")[1:]


def test_header_is_padded_to_console_width(registry, sink, clock) -> None:
    reporter = _reporter(registry, sink, clock)
    header = reporter.header()
    timestamp = header.partition(" =")[0]
    assert header.startswith("3/11/13")
    assert "11:06:40" in header
    assert len(header) == 80
    assert set(header[-10:]) == {"="}
    assert header.count("=") == 80 - len(timestamp) - 1


def test_header_padding_never_negative(registry, sink, clock) -> None:
    reporter = _reporter(registry, sink, clock, console_width=10)
    header = reporter.header()
    assert "=" not in header
    assert header.endswith(" ")


def test_header_respects_time_zone(registry, sink, clock) -> None:
    utc = _reporter(registry, sink, clock, time_zone=timezone.utc)
    tokyo = _reporter(registry, sink, clock, time_zone="Asia/Tokyo")
    assert "11:06:40" in utc.header()
    assert "8:06:40" in tokyo.header()


@pytest.fixture
def new_york_local_time(monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is unavailable on this platform")
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


def test_local_time_zone_follows_daylight_saving(registry, sink, clock, new_york_local_time) -> None:
    reporter = _reporter(registry, sink, clock, time_zone=None)
    assert reporter.time_zone is None

    clock.now_ms = 1_358_251_200_000  # 2013-01-15T12:00:00Z
    winter = reporter.header()
    clock.now_ms = 1_373_889_600_000  # 2013-07-15T12:00:00Z
    summer = reporter.header()

    assert winter.startswith("1/15/13")
    assert "7:00:00" in winter
    assert summer.startswith("7/15/13")
    assert "8:00:00" in summer


def test_cycle_renders_groups_and_metrics(registry, sink, clock) -> None:
    registry.gauge(MetricName("cache", "store", "size"), lambda: 42)
    counter = registry.counter(MetricName("app", "jobs", "done"))
    counter.inc(3)

    reporter = _reporter(registry, sink, clock)
    assert reporter.report() is True

    assert _body(sink.getvalue()) == [
        "app:",
        "  done:",
        "            count = 3",
        "    intervalCount = 3",
        "",
        "",
        "cache:",
        "  size:",
        "    value = 42",
        "",
        "",
        "",
        "",
    ]


def test_cycle_with_no_matching_metrics_emits_only_header(registry, sink, clock) -> None:
    registry.gauge(MetricName("cache", "store", "size"), lambda: 42)
    reporter = _reporter(registry, sink, clock, predicate=lambda _name, _metric: False)

    assert reporter.report() is True

    lines = sink.getvalue().split("\n")
    assert lines[0] == reporter.header()
    assert lines[1:] == ["", ""]


def test_unchanged_counter_reports_zero_interval(registry, sink, clock) -> None:
    registry.counter(MetricName("app", "jobs", "done")).inc(5)
    reporter = _reporter(registry, sink, clock)

    reporter.report()
    sink.seek(0)
    sink.truncate()
    reporter.report()

    assert "    intervalCount = 0" in sink.getvalue().split("\n")


def test_reporters_keep_independent_counter_state(registry, sink, clock) -> None:
    counter = registry.counter(MetricName("app", "jobs", "done"))
    counter.inc(5)
    first = _reporter(registry, sink, clock)
    second = _reporter(registry, sink, clock)

    first.report()
    counter.inc(2)
    first.report()
    second.report()

    assert first.formatter.tracker.last_seen(MetricName("app", "jobs", "done")) == 7
    lines = sink.getvalue().split("\n")
    intervals = [line.strip() for line in lines if "intervalCount" in line]
    assert intervals == ["intervalCount = 5", "intervalCount = 2", "intervalCount = 7"]


def test_failed_cycle_is_logged_and_not_fatal(registry, sink, clock, caplog) -> None:
    name = MetricName("app", "events", "broken")
    registry.add(name, BrokenMeter())
    reporter = _reporter(registry, sink, clock)

    with caplog.at_level(logging.ERROR, logger=LOGGER.name):
        assert reporter.report() is False

    assert reporter.failed_cycles == 1
    assert any(record.getMessage() == "report_cycle_failed" for record in caplog.records)
    assert any(record.exc_info for record in caplog.records)
    assert "  broken:" in sink.getvalue()

    registry.remove(name)
    assert reporter.report() is True
    assert reporter.completed_cycles == 1


def test_absent_counters_are_evicted_when_enabled(registry, sink, clock) -> None:
    name = MetricName("app", "jobs", "done")
    registry.counter(name).inc(5)
    reporter = _reporter(registry, sink, clock, evict_absent_counters=True)

    reporter.report()
    registry.remove(name)
    reporter.report()
    assert reporter.formatter.tracker.last_seen(name) is None

    registry.counter(name).inc(1)
    reporter.report()
    assert "    intervalCount = 1" in sink.getvalue().split("\n")


def test_absent_counters_are_kept_by_default(registry, sink, clock) -> None:
    name = MetricName("app", "jobs", "done")
    registry.counter(name).inc(5)
    reporter = _reporter(registry, sink, clock)

    reporter.report()
    registry.remove(name)
    reporter.report()
    registry.counter(name).inc(1)
    reporter.report()

    assert "    intervalCount = -4" in sink.getvalue().split("\n")


def test_start_twice_is_rejected(registry, sink, clock) -> None:
    reporter = _reporter(registry, sink, clock)
    reporter.start(1, TimeUnit.HOURS)
    try:
        assert reporter.state is LifecycleState.RUNNING
        with pytest.raises(ReporterStateError):
            reporter.start(1, TimeUnit.HOURS)
    finally:
        reporter.stop()


def test_stopped_reporter_cannot_report_or_restart(registry, sink, clock) -> None:
    reporter = _reporter(registry, sink, clock)
    reporter.stop()
    reporter.stop()

    assert reporter.state is LifecycleState.STOPPED
    with pytest.raises(ReporterStateError):
        reporter.report()
    with pytest.raises(ReporterStateError):
        reporter.start(1)
    assert sink.getvalue() == ""


def test_start_requires_positive_period(registry, sink, clock) -> None:
    reporter = _reporter(registry, sink, clock)
    with pytest.raises(ValueError):
        reporter.start(0)
    assert reporter.state is LifecycleState.IDLE


def test_context_manager_stops_reporter(registry, sink, clock) -> None:
    with _reporter(registry, sink, clock) as reporter:
        reporter.start(1, TimeUnit.HOURS)
    assert reporter.state is LifecycleState.STOPPED


def test_enable_starts_reporter_on_stdout(registry, clock) -> None:
    reporter = ConsoleReporter.enable(registry, 1, TimeUnit.HOURS, clock=clock, logger=LOGGER)
    try:
        assert reporter.state is LifecycleState.RUNNING
    finally:
        reporter.stop()


def test_stop_from_inside_a_cycle_is_rejected(registry, sink, clock) -> None:
    reporter = _reporter(registry, sink, clock)
    registry.gauge(MetricName("app", "control", "halt"), reporter.stop)

    assert reporter.report() is False
    assert reporter.failed_cycles == 1
    assert reporter.state is LifecycleState.IDLE

    reporter.stop()
    written = sink.getvalue()
    assert reporter.state is LifecycleState.STOPPED
    with pytest.raises(ReporterStateError):
        reporter.report()
    assert sink.getvalue() == written
