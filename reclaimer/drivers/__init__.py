"""Driver layer - container engine abstraction."""

from reclaimer.drivers.base import ContainerSummary, PruneReport, Pruner, VolumeSummary
from reclaimer.drivers.docker import DockerPruner

__all__ = [
    "ContainerSummary",
    "DockerPruner",
    "PruneReport",
    "Pruner",
    "VolumeSummary",
]
