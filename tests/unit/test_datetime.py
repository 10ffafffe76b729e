"""Unit tests for engine timestamp helpers."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from reclaimer.utils.datetime import age_in_days, parse_engine_timestamp, utcnow


def test_utcnow_is_aware():
    assert utcnow().tzinfo is not None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2026-10-01T08:30:00Z", datetime(2026, 10, 1, 8, 30, tzinfo=UTC)),
        ("2026-10-01T08:30:00.123456789Z", datetime(2026, 10, 1, 8, 30, 0, 123456, tzinfo=UTC)),
        ("2026-10-01T08:30:00.5Z", datetime(2026, 10, 1, 8, 30, 0, 500000, tzinfo=UTC)),
        ("2026-10-01T05:30:00-03:00", datetime(2026, 10, 1, 8, 30, tzinfo=UTC)),
        ("2026-10-01T08:30:00", datetime(2026, 10, 1, 8, 30, tzinfo=UTC)),
    ],
)
def test_parse_engine_timestamp(raw, expected):
    assert parse_engine_timestamp(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "not a date"])
def test_parse_engine_timestamp_invalid(raw):
    assert parse_engine_timestamp(raw) is None


def test_age_in_days_is_fractional():
    now = datetime(2026, 10, 19, tzinfo=UTC)

    assert age_in_days(now - timedelta(hours=36), now) == pytest.approx(1.5)


def test_age_in_days_accepts_naive_created_at():
    now = datetime(2026, 10, 19, tzinfo=UTC)
    created_at = datetime(2026, 10, 12)

    assert age_in_days(created_at, now) == pytest.approx(7.0)
