from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import total_ordering
from typing import Optional


class TimeUnit(str, Enum):
    NANOSECONDS = "nanoseconds"
    MICROSECONDS = "microseconds"
    MILLISECONDS = "milliseconds"
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"

    @property
    def seconds(self) -> float:
        return _SECONDS_PER_UNIT[self]

    def to_seconds(self, duration: float) -> float:
        return duration * self.seconds

    def convert(self, duration: float, source: "TimeUnit") -> float:
        """Convert ``duration`` expressed in ``source`` units into this unit."""
        return duration * source.seconds / self.seconds

    @staticmethod
    def parse(raw: str) -> "TimeUnit":
        try:
            return TimeUnit(raw.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown time unit: {raw}") from None


_SECONDS_PER_UNIT = {
    TimeUnit.NANOSECONDS: 1e-9,
    TimeUnit.MICROSECONDS: 1e-6,
    TimeUnit.MILLISECONDS: 1e-3,
    TimeUnit.SECONDS: 1.0,
    TimeUnit.MINUTES: 60.0,
    TimeUnit.HOURS: 3600.0,
    TimeUnit.DAYS: 86400.0,
}


class MetricKind(str, Enum):
    GAUGE = "gauge"
    COUNTER = "counter"
    METER = "meter"
    HISTOGRAM = "histogram"
    TIMER = "timer"


@total_ordering
@dataclass(frozen=True)
class MetricName:
    group: str
    type: str
    name: str
    scope: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.group:
            raise ValueError("MetricName.group must not be empty")
        if not self.type:
            raise ValueError("MetricName.type must not be empty")
        if not self.name:
            raise ValueError("MetricName.name must not be empty")
        if self.scope == "":
            object.__setattr__(self, "scope", None)

    def __lt__(self, other: "MetricName") -> bool:
        if not isinstance(other, MetricName):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def _sort_key(self) -> tuple[str, str, str, str]:
        return (self.group, self.type, self.name, self.scope or "")

    @property
    def qualified_name(self) -> str:
        base = f"{self.group}:type={self.type}"
        if self.scope:
            base += f",scope={self.scope}"
        return f"{base},name={self.name}"

    def __str__(self) -> str:
        return self.qualified_name
