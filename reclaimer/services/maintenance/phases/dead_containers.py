"""DeadContainerPhase - force-remove containers that have exited or died."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from reclaimer.services.maintenance.base import MaintenancePhase, PhaseResult

if TYPE_CHECKING:
    from reclaimer.drivers.base import ContainerSummary, Pruner

logger = structlog.get_logger()

DEAD_STATUS_MARKERS = ("exited", "dead")


def is_dead(container: "ContainerSummary") -> bool:
    """Case-insensitive substring match on the status text."""
    status = container.status.lower()
    return any(marker in status for marker in DEAD_STATUS_MARKERS)


def select_dead(containers: list["ContainerSummary"]) -> list["ContainerSummary"]:
    """Filter to exited/dead containers, preserving listing order."""
    return [c for c in containers if is_dead(c)]


class DeadContainerPhase(MaintenancePhase):
    """Removes exited/dead containers one at a time, in listing order.

    A failed removal aborts the phase; remaining containers are not attempted.
    """

    def __init__(self, pruner: "Pruner") -> None:
        self._pruner = pruner
        self._log = logger.bind(phase="dead_containers")

    @property
    def name(self) -> str:
        return "dead_containers"

    async def run(self) -> PhaseResult:
        result = PhaseResult(phase_name=self.name)

        containers = await self._pruner.list_containers()
        dead = select_dead(containers)

        self._log.info(
            "maintenance.dead_containers.discovery",
            total=len(containers),
            dead=len(dead),
        )

        for container in dead:
            await self._pruner.remove_container(container.id)
            result.record_removed(container.id)
            self._log.info(
                "maintenance.dead_containers.removed",
                container_id=container.id,
                status=container.status,
            )

        return result
