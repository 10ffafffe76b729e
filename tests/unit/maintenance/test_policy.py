"""Unit tests for the volume retention policy.

Pure function tests: no engine connection required.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from reclaimer.drivers.base import VolumeSummary
from reclaimer.services.maintenance.policy import (
    RetentionVerdict,
    evaluate,
    is_eligible_for_removal,
)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


def _volume(ref_count: int | None = 0, age: timedelta | None = None) -> VolumeSummary:
    created_at = None if age is None else NOW - age
    return VolumeSummary(name="vol", ref_count=ref_count, created_at=created_at)


class TestReferencedVolumes:
    """Volumes in use are never eligible."""

    @pytest.mark.parametrize("ref_count", [1, 2, 50])
    @pytest.mark.parametrize("age", [None, timedelta(days=1), timedelta(days=3650)])
    def test_nonzero_ref_count_is_never_eligible(self, ref_count, age):
        volume = _volume(ref_count=ref_count, age=age)

        assert is_eligible_for_removal(volume, 7, NOW) is False
        assert evaluate(volume, 7, NOW).verdict is RetentionVerdict.IN_USE

    def test_unknown_usage_is_treated_as_in_use(self):
        volume = _volume(ref_count=None, age=timedelta(days=365))

        assert is_eligible_for_removal(volume, 7, NOW) is False


class TestUnreferencedVolumes:
    """Volumes with RefCount == 0 are gated by age only."""

    def test_younger_than_window_is_too_young(self):
        decision = evaluate(_volume(age=timedelta(days=6.9)), 7, NOW)

        assert decision.verdict is RetentionVerdict.TOO_YOUNG
        assert decision.eligible is False
        assert decision.age_days == pytest.approx(6.9)

    def test_exactly_at_window_is_eligible(self):
        assert is_eligible_for_removal(_volume(age=timedelta(days=7)), 7, NOW) is True

    def test_older_than_window_is_eligible(self):
        decision = evaluate(_volume(age=timedelta(days=7.1)), 7, NOW)

        assert decision.eligible is True
        assert decision.age_days == pytest.approx(7.1)

    def test_missing_created_at_is_eligible_immediately(self):
        decision = evaluate(_volume(age=None), 7, NOW)

        assert decision.eligible is True
        assert decision.age_days is None

    def test_zero_retention_makes_any_age_eligible(self):
        assert is_eligible_for_removal(_volume(age=timedelta(seconds=1)), 0, NOW) is True

    def test_fractional_days_are_compared_precisely(self):
        # One second short of the window is still too young
        volume = _volume(age=timedelta(days=7) - timedelta(seconds=1))

        assert is_eligible_for_removal(volume, 7, NOW) is False

    def test_negative_retention_rejected(self):
        with pytest.raises(ValueError):
            evaluate(_volume(age=timedelta(days=1)), -1, NOW)

    def test_naive_created_at_is_read_as_utc(self):
        created_at = (NOW - timedelta(days=6.9)).replace(tzinfo=None)
        volume = VolumeSummary(name="vol", ref_count=0, created_at=created_at)

        decision = evaluate(volume, 7, NOW)

        assert decision.verdict is RetentionVerdict.TOO_YOUNG
        assert decision.age_days == pytest.approx(6.9)


def test_same_volume_changes_verdict_as_it_ages():
    """A volume 6.9 days old is skipped; the same volume at 7.1 days is eligible."""
    created_at = NOW - timedelta(days=6.9)
    volume = VolumeSummary(name="data", ref_count=0, created_at=created_at)

    assert is_eligible_for_removal(volume, 7, NOW) is False
    assert is_eligible_for_removal(volume, 7, created_at + timedelta(days=7.1)) is True
