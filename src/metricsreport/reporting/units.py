from __future__ import annotations

from metricsreport.common.models import TimeUnit
from metricsreport.reporting.errors import UnsupportedTimeUnitError

_ABBREVIATIONS = {
    TimeUnit.NANOSECONDS: "ns",
    TimeUnit.MICROSECONDS: "us",
    TimeUnit.MILLISECONDS: "ms",
    TimeUnit.SECONDS: "s",
}


def abbreviate(unit: TimeUnit) -> str:
    try:
        return _ABBREVIATIONS[unit]
    except (KeyError, TypeError):
        raise UnsupportedTimeUnitError(
            f"Unrecognized time unit: {getattr(unit, 'value', unit)}"
        ) from None
