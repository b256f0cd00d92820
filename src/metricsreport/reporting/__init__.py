from metricsreport.reporting.console import ConsoleReporter
from metricsreport.reporting.deltas import CounterDeltaTracker
from metricsreport.reporting.errors import ReporterStateError, UnsupportedTimeUnitError
from metricsreport.reporting.formatter import MetricFormatter
from metricsreport.reporting.polling import LifecycleState, PollingReporter
from metricsreport.reporting.units import abbreviate

__all__ = [
    "ConsoleReporter",
    "CounterDeltaTracker",
    "LifecycleState",
    "MetricFormatter",
    "PollingReporter",
    "ReporterStateError",
    "UnsupportedTimeUnitError",
    "abbreviate",
]
