"""Maintenance phase base classes and result structures."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class PhaseResult:
    """Result of a maintenance phase execution.

    Attributes:
        phase_name: Name of the phase
        cleaned_count: Number of resources removed
        skipped_count: Number of resources left in place (policy skips)
        reclaimed_bytes: Space reported as reclaimed by bulk prunes
        removed: Identifiers of removed resources, in removal order
        skipped_phase: True when the phase was disabled by configuration
    """

    phase_name: str = ""
    cleaned_count: int = 0
    skipped_count: int = 0
    reclaimed_bytes: int = 0
    removed: list[str] = field(default_factory=list)
    skipped_phase: bool = False

    def record_removed(self, identifier: str) -> None:
        """Count one removed resource."""
        self.removed.append(identifier)
        self.cleaned_count += 1


@dataclass
class CycleResult:
    """Summary of one completed maintenance cycle."""

    started_at: datetime
    finished_at: datetime | None = None
    phases: list[PhaseResult] = field(default_factory=list)

    @property
    def total_cleaned(self) -> int:
        return sum(p.cleaned_count for p in self.phases)

    @property
    def total_skipped(self) -> int:
        return sum(p.skipped_count for p in self.phases)

    @property
    def total_reclaimed_bytes(self) -> int:
        return sum(p.reclaimed_bytes for p in self.phases)

    @property
    def duration_seconds(self) -> float | None:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()


class MaintenancePhase(ABC):
    """Abstract base class for maintenance phases.

    Phases run in a fixed order:
    - BuildCachePhase: bulk prunes, gated by configuration
    - DeadContainerPhase: force-remove exited/dead containers
    - UnusedVolumePhase: remove unreferenced volumes past retention
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the phase name (for logging and error context)."""
        ...

    @abstractmethod
    async def run(self) -> PhaseResult:
        """Execute the phase.

        Unlike best-effort cleanup, the first failure aborts the phase:
        implementations raise instead of collecting errors. Removals already
        performed before the failure stand.

        Returns:
            PhaseResult with cleanup statistics
        """
        ...
