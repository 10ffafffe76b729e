"""Volume retention policy.

Pure decision logic: whether an unused volume may be removed, given its
reference count, its age, and the configured retention window in days.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from reclaimer.drivers.base import VolumeSummary
from reclaimer.utils.datetime import age_in_days


class RetentionVerdict(str, Enum):
    """Outcome of evaluating one volume."""

    ELIGIBLE = "eligible"
    IN_USE = "in_use"
    TOO_YOUNG = "too_young"


@dataclass(frozen=True)
class RetentionDecision:
    """Verdict for a volume plus its computed age (None if unknown)."""

    verdict: RetentionVerdict
    age_days: float | None = None

    @property
    def eligible(self) -> bool:
        return self.verdict is RetentionVerdict.ELIGIBLE


def evaluate(volume: VolumeSummary, retention_days: int, now: datetime) -> RetentionDecision:
    """Decide whether `volume` may be removed at instant `now`.

    - Referenced volumes (or volumes with unknown usage) are never eligible.
    - Unreferenced volumes without a creation timestamp are eligible.
    - Otherwise the volume must be at least `retention_days` old.
    """
    if retention_days < 0:
        raise ValueError(f"retention_days must be >= 0, got {retention_days}")

    if volume.ref_count is None or volume.ref_count != 0:
        return RetentionDecision(RetentionVerdict.IN_USE)

    if volume.created_at is None:
        return RetentionDecision(RetentionVerdict.ELIGIBLE)

    age = age_in_days(volume.created_at, now)
    if age < retention_days:
        return RetentionDecision(RetentionVerdict.TOO_YOUNG, age_days=age)
    return RetentionDecision(RetentionVerdict.ELIGIBLE, age_days=age)


def is_eligible_for_removal(volume: VolumeSummary, retention_days: int, now: datetime) -> bool:
    """Boolean form of evaluate()."""
    return evaluate(volume, retention_days, now).eligible
