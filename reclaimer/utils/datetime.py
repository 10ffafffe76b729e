"""Datetime helpers.

All engine timestamps are compared as timezone-aware UTC datetimes.
"""

from __future__ import annotations

from datetime import UTC, datetime

SECONDS_PER_DAY = 24 * 60 * 60


def utcnow() -> datetime:
    """Return current UTC time as an aware datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Return `value` as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_engine_timestamp(value: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp as reported by the Docker engine.

    Returns None for missing or unparseable values. Naive values are
    assumed to be UTC. Fractional seconds beyond microseconds are dropped.
    """
    if not value:
        return None

    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None

    return as_utc(parsed)


def age_in_days(created_at: datetime, now: datetime) -> float:
    """Fractional days elapsed between created_at and now."""
    return (as_utc(now) - as_utc(created_at)).total_seconds() / SECONDS_PER_DAY
