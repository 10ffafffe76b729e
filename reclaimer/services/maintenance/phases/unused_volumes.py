"""UnusedVolumePhase - remove unreferenced volumes past the retention window."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Callable

import structlog

from reclaimer.services.maintenance.base import MaintenancePhase, PhaseResult
from reclaimer.services.maintenance.policy import RetentionVerdict, evaluate
from reclaimer.utils.datetime import utcnow

if TYPE_CHECKING:
    from reclaimer.drivers.base import Pruner

logger = structlog.get_logger()


class UnusedVolumePhase(MaintenancePhase):
    """Evaluates every volume against the retention policy.

    Eligible volumes are removed one at a time in listing order. Volumes
    still in use or younger than the window are skipped and logged. A failed
    removal aborts the phase.
    """

    def __init__(
        self,
        pruner: "Pruner",
        *,
        retention_days: int,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if retention_days < 0:
            raise ValueError(f"retention_days must be >= 0, got {retention_days}")
        self._pruner = pruner
        self._retention_days = retention_days
        self._clock = clock
        self._log = logger.bind(phase="unused_volumes")

    @property
    def name(self) -> str:
        return "unused_volumes"

    async def run(self) -> PhaseResult:
        result = PhaseResult(phase_name=self.name)

        volumes = await self._pruner.list_volumes()
        now = self._clock()

        self._log.info(
            "maintenance.unused_volumes.discovery",
            total=len(volumes),
            retention_days=self._retention_days,
        )

        for volume in volumes:
            decision = evaluate(volume, self._retention_days, now)

            if decision.verdict is RetentionVerdict.IN_USE:
                self._log.info(
                    "maintenance.unused_volumes.skip.in_use",
                    name=volume.name,
                    ref_count=volume.ref_count,
                )
                result.skipped_count += 1
                continue

            if decision.verdict is RetentionVerdict.TOO_YOUNG:
                self._log.info(
                    "maintenance.unused_volumes.skip.too_young",
                    name=volume.name,
                    age_days=round(decision.age_days or 0.0, 1),
                    retention_days=self._retention_days,
                )
                result.skipped_count += 1
                continue

            await self._pruner.remove_volume(volume.name)
            result.record_removed(volume.name)
            self._log.info(
                "maintenance.unused_volumes.removed",
                name=volume.name,
                age_days=None if decision.age_days is None else round(decision.age_days, 1),
            )

        return result
