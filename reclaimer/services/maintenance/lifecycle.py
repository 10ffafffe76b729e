"""Builds the maintenance engine and scheduler from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from reclaimer.services.maintenance.base import MaintenancePhase
from reclaimer.services.maintenance.engine import MaintenanceEngine
from reclaimer.services.maintenance.phases import (
    BuildCachePhase,
    DeadContainerPhase,
    UnusedVolumePhase,
)
from reclaimer.services.maintenance.scheduler import MaintenanceScheduler

if TYPE_CHECKING:
    from reclaimer.config import Settings
    from reclaimer.drivers.base import Pruner

logger = structlog.get_logger()


def build_phases(pruner: "Pruner", settings: "Settings") -> list[MaintenancePhase]:
    """Phases in execution order. The build-cache phase is always present;
    when disabled it only logs its skip."""
    return [
        BuildCachePhase(
            pruner,
            enabled=settings.remove_build_cache,
            all_unused_images=settings.prune_all_unused_images,
        ),
        DeadContainerPhase(pruner),
        UnusedVolumePhase(pruner, retention_days=settings.unused_volume_retention),
    ]


def create_engine(pruner: "Pruner", settings: "Settings") -> MaintenanceEngine:
    return MaintenanceEngine(build_phases(pruner, settings))


def create_scheduler(pruner: "Pruner", settings: "Settings") -> MaintenanceScheduler:
    """Wire pruner -> engine -> scheduler.

    Mode and swarm_global do not change the cycle; they are logged so the
    scope of each node's cleanup is visible in its output.
    """
    logger.info(
        "maintenance.init",
        scope=settings.scope,
        interval_hours=settings.cleanup_interval,
        volume_retention_days=settings.unused_volume_retention,
        remove_build_cache=settings.remove_build_cache,
    )
    return MaintenanceScheduler(
        create_engine(pruner, settings),
        interval_seconds=settings.interval_seconds,
    )
