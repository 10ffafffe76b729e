"""Maintenance phases, in execution order."""

from reclaimer.services.maintenance.phases.build_cache import BuildCachePhase
from reclaimer.services.maintenance.phases.dead_containers import DeadContainerPhase
from reclaimer.services.maintenance.phases.unused_volumes import UnusedVolumePhase

__all__ = [
    "BuildCachePhase",
    "DeadContainerPhase",
    "UnusedVolumePhase",
]
