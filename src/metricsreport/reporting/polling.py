from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from metricsreport.common.logging import get_logger
from metricsreport.common.models import TimeUnit
from metricsreport.metrics.registry import MetricsRegistry
from metricsreport.reporting.errors import ReporterStateError


class LifecycleState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class PollingReporter(ABC):
    """
    Runs ``run()`` on a dedicated thread at a fixed rate until stopped.

    Cycles never overlap: scheduled and manual cycles share one lock. A cycle
    that raises is logged and the schedule keeps going.
    """

    def __init__(
        self,
        registry: MetricsRegistry,
        name: str,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._registry = registry
        self._name = name
        self._logger = logger or get_logger("reporter")
        self._state = LifecycleState.IDLE
        self._state_lock = threading.Lock()
        self._cycle_lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._cycle_thread: Optional[threading.Thread] = None
        self._period_sec = 0.0
        self._completed_cycles = 0
        self._failed_cycles = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def registry(self) -> MetricsRegistry:
        return self._registry

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def completed_cycles(self) -> int:
        return self._completed_cycles

    @property
    def failed_cycles(self) -> int:
        return self._failed_cycles

    @abstractmethod
    def run(self) -> None:
        """Emit one report. Exceptions propagate to the cycle boundary."""

    def start(self, period: float, unit: TimeUnit = TimeUnit.SECONDS) -> None:
        if period <= 0:
            raise ValueError(f"period must be positive, got {period}")
        with self._state_lock:
            if self._state is not LifecycleState.IDLE:
                raise ReporterStateError(f"{self._name} cannot start from state {self._state.value}")
            self._period_sec = unit.to_seconds(period)
            self._state = LifecycleState.RUNNING
            self._thread = threading.Thread(
                target=self._schedule_loop, name=self._name, daemon=True
            )
            self._thread.start()
        self._logger.info(
            "reporter_started",
            extra={"reporter": self._name, "period_sec": self._period_sec},
        )

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop the schedule and wait for any in-flight cycle, so nothing is
        written after this returns. Calling it from inside ``run()`` would
        return while that cycle is still writing, so it is rejected.
        """
        if self._cycle_thread is threading.current_thread():
            raise ReporterStateError(f"{self._name} cannot be stopped from inside a report cycle")
        with self._state_lock:
            if self._state is LifecycleState.STOPPED:
                return
            self._state = LifecycleState.STOPPED
            self._stop_event.set()
            thread = self._thread
        if thread is not None:
            thread.join(timeout)
            if thread.is_alive():
                self._logger.warning(
                    "reporter_stop_timeout", extra={"reporter": self._name, "timeout": timeout}
                )
        # wait out any in-flight manual cycle
        with self._cycle_lock:
            pass
        self._logger.info(
            "reporter_stopped",
            extra={
                "reporter": self._name,
                "completed_cycles": self._completed_cycles,
                "failed_cycles": self._failed_cycles,
            },
        )

    def report(self) -> bool:
        """Run one cycle now. Returns False if the cycle failed."""
        if self._state is LifecycleState.STOPPED:
            raise ReporterStateError(f"{self._name} is stopped")
        return self._run_cycle()

    def _run_cycle(self, *, scheduled: bool = False) -> bool:
        with self._cycle_lock:
            # stop() may have won the race for the lock
            if self._stop_event.is_set():
                if scheduled:
                    return False
                raise ReporterStateError(f"{self._name} is stopped")
            started = time.monotonic()
            outer = self._cycle_thread
            self._cycle_thread = threading.current_thread()
            try:
                self.run()
            except Exception:
                self._failed_cycles += 1
                self._logger.exception(
                    "report_cycle_failed",
                    extra={"reporter": self._name, "failed_cycles": self._failed_cycles},
                )
                return False
            finally:
                self._cycle_thread = outer
            self._completed_cycles += 1
            self._logger.debug(
                "report_cycle_complete",
                extra={
                    "reporter": self._name,
                    "duration_ms": int((time.monotonic() - started) * 1000),
                },
            )
            return True

    def _schedule_loop(self) -> None:
        next_run = time.monotonic() + self._period_sec
        while not self._stop_event.wait(max(0.0, next_run - time.monotonic())):
            self._run_cycle(scheduled=True)
            next_run += self._period_sec
            now = time.monotonic()
            if next_run <= now:
                skipped = int((now - next_run) // self._period_sec) + 1
                next_run += skipped * self._period_sec
                self._logger.warning(
                    "report_cycle_overrun", extra={"reporter": self._name, "skipped": skipped}
                )

    def __enter__(self) -> "PollingReporter":
        return self

    def __exit__(self, *_exc) -> None:
        self.stop()
