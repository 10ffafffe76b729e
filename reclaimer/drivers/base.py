"""Pruner base class - container engine abstraction.

Pruner is responsible ONLY for talking to the engine. It does NOT handle:
- Eligibility decisions (see services.maintenance.policy)
- Ordering of cleanup steps
- Retry/backoff

Every failure is raised to the caller, tagged with the resource class or
target that failed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class ContainerSummary:
    """Container as reported by the engine's list endpoint."""

    id: str
    status: str  # Human status text, e.g. "Exited (0) 2 hours ago"
    state: str | None = None  # Machine state, e.g. "exited"
    names: list[str] = field(default_factory=list)


@dataclass
class VolumeSummary:
    """Volume with its usage data.

    ref_count is None when the engine did not report usage for the volume.
    created_at is None for legacy volumes without a creation timestamp.
    """

    name: str
    ref_count: int | None = None
    created_at: datetime | None = None
    driver: str | None = None


@dataclass
class PruneReport:
    """Summary of one bulk prune call."""

    resource: str
    deleted: list[str] = field(default_factory=list)
    space_reclaimed: int = 0


class Pruner(ABC):
    """Abstract engine adapter consumed by the maintenance engine."""

    # Bulk prunes

    @abstractmethod
    async def prune_containers(self, *, until: str | None = None) -> PruneReport:
        """Remove stopped containers, optionally only those created before `until`."""
        ...

    @abstractmethod
    async def prune_images(self, *, dangling_only: bool = True) -> PruneReport:
        """Remove unused images."""
        ...

    @abstractmethod
    async def prune_networks(self) -> PruneReport:
        """Remove networks not used by any container."""
        ...

    @abstractmethod
    async def prune_build_cache(self) -> PruneReport:
        """Remove builder cache."""
        ...

    # Inventory

    @abstractmethod
    async def list_containers(self) -> list[ContainerSummary]:
        """List all containers, including stopped ones."""
        ...

    @abstractmethod
    async def list_volumes(self) -> list[VolumeSummary]:
        """List volumes with usage data."""
        ...

    # Removal

    @abstractmethod
    async def remove_container(self, container_id: str) -> None:
        """Force-remove a single container."""
        ...

    @abstractmethod
    async def remove_volume(self, name: str) -> None:
        """Remove a single volume."""
        ...

    # Connection

    @abstractmethod
    async def ping(self) -> None:
        """Raise EngineUnreachableError if the engine does not answer."""
        ...

    async def close(self) -> None:
        """Release the engine connection."""
        return None
