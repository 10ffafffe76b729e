"""BuildCachePhase - bulk prunes of containers, images, networks and builder cache.

Sub-steps run in a fixed order. The first failing prune aborts the phase;
later prunes are not attempted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Awaitable, Callable

import structlog

from reclaimer.services.maintenance.base import MaintenancePhase, PhaseResult

if TYPE_CHECKING:
    from reclaimer.drivers.base import PruneReport, Pruner

logger = structlog.get_logger()

# Only containers stopped for longer than this are bulk-pruned
CONTAINER_PRUNE_UNTIL = "24h"


class BuildCachePhase(MaintenancePhase):
    """Maintenance phase that clears build leftovers with engine bulk prunes."""

    def __init__(
        self,
        pruner: "Pruner",
        *,
        enabled: bool,
        all_unused_images: bool = True,
    ) -> None:
        self._pruner = pruner
        self._enabled = enabled
        self._all_unused_images = all_unused_images
        self._log = logger.bind(phase="build_cache")

    @property
    def name(self) -> str:
        return "build_cache"

    def _steps(self) -> list[tuple[str, Callable[[], Awaitable["PruneReport"]]]]:
        return [
            ("containers", lambda: self._pruner.prune_containers(until=CONTAINER_PRUNE_UNTIL)),
            ("images", lambda: self._pruner.prune_images(dangling_only=not self._all_unused_images)),
            ("networks", self._pruner.prune_networks),
            ("build_cache", self._pruner.prune_build_cache),
        ]

    async def run(self) -> PhaseResult:
        result = PhaseResult(phase_name=self.name)

        if not self._enabled:
            self._log.info("maintenance.build_cache.disabled")
            result.skipped_phase = True
            return result

        self._log.info("maintenance.build_cache.start")

        for step, prune in self._steps():
            report = await prune()
            result.cleaned_count += len(report.deleted)
            result.reclaimed_bytes += report.space_reclaimed
            result.removed.extend(report.deleted)
            self._log.info(
                "maintenance.build_cache.pruned",
                step=step,
                deleted=len(report.deleted),
                space_reclaimed=report.space_reclaimed,
            )

        self._log.info(
            "maintenance.build_cache.complete",
            deleted=result.cleaned_count,
            space_reclaimed=result.reclaimed_bytes,
        )
        return result
