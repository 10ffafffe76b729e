"""Maintenance service: ordered reclamation of unused engine resources.

Usage:
    from reclaimer.services.maintenance import create_scheduler

    scheduler = create_scheduler(pruner, settings)
    outcome = await scheduler.run_forever()
"""

from reclaimer.services.maintenance.base import CycleResult, MaintenancePhase, PhaseResult
from reclaimer.services.maintenance.engine import MaintenanceEngine
from reclaimer.services.maintenance.lifecycle import build_phases, create_engine, create_scheduler
from reclaimer.services.maintenance.policy import (
    RetentionDecision,
    RetentionVerdict,
    evaluate,
    is_eligible_for_removal,
)
from reclaimer.services.maintenance.scheduler import (
    MaintenanceScheduler,
    SchedulerOutcome,
    SchedulerState,
)

__all__ = [
    "CycleResult",
    "MaintenanceEngine",
    "MaintenancePhase",
    "MaintenanceScheduler",
    "PhaseResult",
    "RetentionDecision",
    "RetentionVerdict",
    "SchedulerOutcome",
    "SchedulerState",
    "build_phases",
    "create_engine",
    "create_scheduler",
    "evaluate",
    "is_eligible_for_removal",
]
