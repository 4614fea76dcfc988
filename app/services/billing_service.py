"""
Checkout fee calculation.

Whole elapsed minutes are rounded up to started hours and multiplied by the
hourly rate in Decimal. A stay shorter than a minute still bills
`minimum_hours` (MINIMUM_BILLABLE_HOURS, one hour by default).
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from app.exceptions import LedgerIntegrityError

CENT = Decimal("0.01")


@dataclass(frozen=True)
class Bill:
    entry_time: datetime
    exit_time: datetime
    duration_minutes: int
    duration_hours: int
    rate_per_hour: Decimal
    total_amount: Decimal


def elapsed_minutes(entry_time: datetime, exit_time: datetime) -> int:
    """Whole minutes between the two instants, truncated."""
    if exit_time < entry_time:
        raise LedgerIntegrityError(
            f"Exit time {exit_time.isoformat()} is before entry time {entry_time.isoformat()}"
        )
    return int((exit_time - entry_time).total_seconds() // 60)


def billable_hours(duration_minutes: int, minimum_hours: int = 1) -> int:
    hours = -(-duration_minutes // 60)   # ceil without floats
    return max(hours, minimum_hours)


def compute_bill(entry_time: datetime, exit_time: datetime, rate_per_hour, minimum_hours: int = 1) -> Bill:
    rate = Decimal(str(rate_per_hour))
    minutes = elapsed_minutes(entry_time, exit_time)
    hours = billable_hours(minutes, minimum_hours)
    total = (rate * hours).quantize(CENT, rounding=ROUND_HALF_UP)
    return Bill(
        entry_time=entry_time,
        exit_time=exit_time,
        duration_minutes=minutes,
        duration_hours=hours,
        rate_per_hour=rate,
        total_amount=total,
    )
