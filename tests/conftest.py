import io
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from metricsreport.metrics.registry import MetricsRegistry


class FakeClock:
    def __init__(self, time_ms: int = 1_363_000_000_000, tick_ns: int = 0) -> None:
        self.now_ms = time_ms
        self.now_ns = tick_ns

    def time_ms(self) -> int:
        return self.now_ms

    def tick_ns(self) -> int:
        return self.now_ns

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)
        self.now_ns += int(seconds * 1_000_000_000)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock) -> MetricsRegistry:
    return MetricsRegistry(clock=clock)


@pytest.fixture
def sink() -> io.StringIO:
    return io.StringIO()
