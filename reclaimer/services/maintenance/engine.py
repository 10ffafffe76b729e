"""Maintenance engine - runs one reclamation cycle.

A cycle executes its phases strictly in order. There is no partial success:
the first phase error is wrapped with the phase name and raised, and no
later phase runs. Removals already performed are not rolled back.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog

from reclaimer.errors import PhaseFailedError
from reclaimer.services.maintenance.base import CycleResult, MaintenancePhase
from reclaimer.utils.datetime import utcnow

logger = structlog.get_logger()


class MaintenanceEngine:
    """Orchestrates the ordered maintenance phases.

    Usage:
        engine = MaintenanceEngine(
            phases=[BuildCachePhase(...), DeadContainerPhase(...), UnusedVolumePhase(...)],
        )
        result = await engine.run_cycle()
    """

    def __init__(
        self,
        phases: list[MaintenancePhase],
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._phases = phases
        self._clock = clock
        self._log = logger.bind(service="maintenance_engine")

    @property
    def phase_names(self) -> list[str]:
        return [phase.name for phase in self._phases]

    async def run_cycle(self) -> CycleResult:
        """Execute every phase in order.

        Raises:
            PhaseFailedError: the first phase that raised, with the original
                error chained as __cause__
        """
        cycle = CycleResult(started_at=self._clock())
        self._log.info("maintenance.cycle.start", phases=self.phase_names)

        for phase in self._phases:
            self._log.info("maintenance.phase.start", phase=phase.name)

            try:
                result = await phase.run()
            except Exception as e:
                self._log.error(
                    "maintenance.phase.failed",
                    phase=phase.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise PhaseFailedError(phase.name, e) from e

            result.phase_name = phase.name
            cycle.phases.append(result)

            self._log.info(
                "maintenance.phase.complete",
                phase=phase.name,
                cleaned=result.cleaned_count,
                skipped=result.skipped_count,
                disabled=result.skipped_phase,
            )

        cycle.finished_at = self._clock()
        self._log.info(
            "maintenance.cycle.complete",
            total_cleaned=cycle.total_cleaned,
            total_skipped=cycle.total_skipped,
            reclaimed_bytes=cycle.total_reclaimed_bytes,
            duration_seconds=cycle.duration_seconds,
        )
        return cycle
