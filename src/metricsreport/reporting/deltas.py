from __future__ import annotations

from typing import Dict, Iterable, Optional

from metricsreport.common.models import MetricName


class CounterDeltaTracker:
    """
    Last-seen counter values for a single reporter.

    Counts may go down, so deltas can be negative. A restarted process restarts
    its counters and its reporter together, so resets need no special casing.
    Not thread-safe; the owning reporter serialises access.
    """

    def __init__(self) -> None:
        self._last_counts: Dict[MetricName, int] = {}

    def delta(self, name: MetricName, current_count: int) -> int:
        previous = self._last_counts.get(name, 0)
        self._last_counts[name] = current_count
        return current_count - previous

    def last_seen(self, name: MetricName) -> Optional[int]:
        return self._last_counts.get(name)

    def forget(self, name: MetricName) -> None:
        self._last_counts.pop(name, None)

    def retain(self, names: Iterable[MetricName]) -> int:
        keep = set(names)
        stale = [name for name in self._last_counts if name not in keep]
        for name in stale:
            del self._last_counts[name]
        return len(stale)

    def __len__(self) -> int:
        return len(self._last_counts)
