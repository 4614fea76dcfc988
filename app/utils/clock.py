"""
Clock used by the services. Timestamps are stored as naive UTC.
Tests pass explicit `now` values instead of patching this.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    """Convert an offset-aware datetime to naive UTC. Naive values are taken as UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
