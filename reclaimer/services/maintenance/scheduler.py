"""Maintenance scheduler - runs cycles forever, fails fast.

One cycle runs immediately, then one per interval. Any cycle failure moves
the scheduler to TERMINATED and nothing else is scheduled. The scheduler
never exits the process; it returns a SchedulerOutcome to its caller.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum

import structlog

from reclaimer.services.maintenance.base import CycleResult
from reclaimer.services.maintenance.engine import MaintenanceEngine

logger = structlog.get_logger()


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"
    TERMINATED = "terminated"


@dataclass
class SchedulerOutcome:
    """How run_forever() ended."""

    state: SchedulerState
    cycles_completed: int = 0
    error: BaseException | None = None

    @property
    def exit_code(self) -> int:
        return 1 if self.state is SchedulerState.TERMINATED else 0


class MaintenanceScheduler:
    """Drives the maintenance engine on a fixed-rate timer.

    Responsibilities:
    - Run one cycle at startup, then every interval_seconds
    - Never run two cycles at once (single-flight run lock)
    - Drop timer firings missed while a cycle overran instead of queueing them
    - Transition to TERMINATED on the first cycle failure

    Usage:
        scheduler = MaintenanceScheduler(engine, interval_seconds=24 * 3600)
        outcome = await scheduler.run_forever()
        sys.exit(outcome.exit_code)
    """

    def __init__(self, engine: MaintenanceEngine, interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be > 0, got {interval_seconds}")
        self._engine = engine
        self._interval = interval_seconds
        self._log = logger.bind(service="maintenance_scheduler")

        self._state = SchedulerState.IDLE
        self._cycles_completed = 0
        self._stop_event = asyncio.Event()

        # Mutex to prevent overlapping cycles
        self._run_lock = asyncio.Lock()

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def cycles_completed(self) -> int:
        return self._cycles_completed

    @property
    def interval_seconds(self) -> float:
        return self._interval

    async def run_once(self) -> CycleResult:
        """Execute one cycle. Waits if another cycle is in progress."""
        async with self._run_lock:
            if self._state is SchedulerState.TERMINATED:
                raise RuntimeError("Scheduler is terminated; no further cycles run")
            result = await self._engine.run_cycle()
            self._cycles_completed += 1
            return result

    async def run_forever(self) -> SchedulerOutcome:
        """Run the initial cycle, then repeat until stopped or a cycle fails."""
        if self._state is not SchedulerState.IDLE:
            raise RuntimeError(f"Scheduler already started (state={self._state.value})")

        self._state = SchedulerState.RUNNING
        self._log.info("maintenance.scheduler.started", interval_seconds=self._interval)

        loop = asyncio.get_running_loop()
        next_fire = loop.time()

        while not self._stop_event.is_set():
            try:
                await self.run_once()
            except Exception as e:
                return self._terminate(e)

            next_fire += self._interval
            now = loop.time()
            if now >= next_fire:
                missed = int((now - next_fire) // self._interval) + 1
                self._log.warning(
                    "maintenance.scheduler.firings_dropped",
                    missed=missed,
                    interval_seconds=self._interval,
                )
                next_fire += missed * self._interval

            if await self._wait_for_stop(next_fire - now):
                break

        self._state = SchedulerState.STOPPED
        self._log.info("maintenance.scheduler.stopped", cycles=self._cycles_completed)
        return SchedulerOutcome(
            state=SchedulerState.STOPPED,
            cycles_completed=self._cycles_completed,
        )

    def request_stop(self) -> None:
        """Ask run_forever() to return after the current cycle (if any)."""
        if not self._stop_event.is_set():
            self._log.info("maintenance.scheduler.stopping")
            self._stop_event.set()

    async def _wait_for_stop(self, delay: float) -> bool:
        """Sleep until the next firing. Returns True if stop was requested."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except TimeoutError:
            return False
        return True

    def _terminate(self, error: Exception) -> SchedulerOutcome:
        self._state = SchedulerState.TERMINATED
        event = (
            "maintenance.scheduler.initial_cycle_failed"
            if self._cycles_completed == 0
            else "maintenance.scheduler.scheduled_cycle_failed"
        )
        self._log.error(
            event,
            error=str(error),
            error_type=type(error).__name__,
            phase=getattr(error, "phase", None),
            cycles=self._cycles_completed,
        )
        return SchedulerOutcome(
            state=SchedulerState.TERMINATED,
            cycles_completed=self._cycles_completed,
            error=error,
        )
