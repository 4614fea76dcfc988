"""
Read-only projections for the dashboard, period reports, search and CSV export.
Nothing here writes to the database.
"""

import csv
import io
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Session
from app.exceptions import ValidationError
from app.models.parking_entry import ParkingEntry, EntryStatus, ReservationFlag, VehicleType
from app.models.reservation import Reservation
from app.services.occupancy_service import get_availability
from app.utils.clock import utcnow

PERIODS = ("daily", "weekly", "monthly")
CSV_HEADERS = ["Vehicle Number", "Owner Name", "Type", "Entry Time", "Exit Time", "Duration (hrs)", "Amount"]
CSV_TIME_FORMAT = "%Y-%m-%d %H:%M"


def period_bounds(period: str, now: Optional[datetime] = None):
    """[start, end) of the day, Sunday-based week, or month containing `now`."""
    now = now or utcnow()
    today = datetime.combine(now.date(), time.min)
    if period == "daily":
        return today, today + timedelta(days=1)
    if period == "weekly":
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        return start, start + timedelta(days=7)
    if period == "monthly":
        start = today.replace(day=1)
        end = (start + timedelta(days=32)).replace(day=1)
        return start, end
    raise ValidationError(f"Report period must be one of: {', '.join(PERIODS)}")


def _entries_between(db: Session, start: datetime, end: datetime):
    return (
        db.query(ParkingEntry)
        .filter(ParkingEntry.entry_time >= start, ParkingEntry.entry_time < end)
        .order_by(ParkingEntry.entry_time.desc())
        .all()
    )


def _revenue(entries) -> Decimal:
    return sum(
        (Decimal(str(e.total_amount)) for e in entries
         if e.status is EntryStatus.EXITED and e.total_amount is not None),
        Decimal("0.00"),
    )


def build_summary(db: Session, period: str = "daily", now: Optional[datetime] = None) -> dict:
    start, end = period_bounds(period, now)
    entries = _entries_between(db, start, end)

    reserved_count = db.query(Reservation).filter(
        Reservation.reservation_datetime >= start, Reservation.reservation_datetime < end
    ).count()

    hourly = {}
    for e in entries:
        hourly[e.entry_time.hour] = hourly.get(e.entry_time.hour, 0) + 1

    return {
        "period": period,
        "start": start,
        "end": end,
        "total_vehicles": len(entries),
        "exited_vehicles": sum(1 for e in entries if e.status is EntryStatus.EXITED),
        "total_revenue": _revenue(entries),
        "reserved_count": reserved_count,
        "walkin_count": sum(1 for e in entries if e.reservation_flag is ReservationFlag.NO),
        "vehicle_types": {t.value: sum(1 for e in entries if e.vehicle_type is t) for t in VehicleType},
        "hourly": [{"hour": f"{h}:00", "vehicles": hourly[h]} for h in sorted(hourly)],
    }


def export_csv(db: Session, period: str = "daily", now: Optional[datetime] = None) -> str:
    """Exited entries of the period, every cell quoted."""
    start, end = period_bounds(period, now)
    exited = [e for e in _entries_between(db, start, end) if e.status is EntryStatus.EXITED]

    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for e in exited:
        writer.writerow([
            e.vehicle_number,
            e.owner_name,
            e.vehicle_type.value,
            e.entry_time.strftime(CSV_TIME_FORMAT),
            e.exit_time.strftime(CSV_TIME_FORMAT) if e.exit_time else "-",
            e.duration_hours or "-",
            f"{Decimal(str(e.total_amount)):.2f}" if e.total_amount is not None else "-",
        ])
    return buf.getvalue()


def build_dashboard(db: Session, now: Optional[datetime] = None) -> dict:
    start, end = period_bounds("daily", now)
    today_entries = _entries_between(db, start, end)
    recent = (
        db.query(ParkingEntry)
        .filter(ParkingEntry.status == EntryStatus.PARKED)
        .order_by(ParkingEntry.entry_time.desc())
        .limit(5)
        .all()
    )
    return {
        "availability": get_availability(db),
        "today_entries": len(today_entries),
        "today_revenue": _revenue(today_entries),
        "recent_parked": recent,
    }


def _contains(value: str) -> str:
    """ilike pattern matching value literally; % and _ typed at the desk are not wildcards."""
    escaped = value.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def search_entries(db: Session, vehicle_number: Optional[str] = None, owner_name: Optional[str] = None,
                   slot_number: Optional[int] = None, date_from: Optional[date] = None,
                   date_to: Optional[date] = None, limit: int = 100):
    """Case-insensitive substring match on vehicle and owner; date_to is inclusive."""
    q = db.query(ParkingEntry)
    if vehicle_number:
        q = q.filter(ParkingEntry.vehicle_number.ilike(_contains(vehicle_number), escape="\\"))
    if owner_name:
        q = q.filter(ParkingEntry.owner_name.ilike(_contains(owner_name), escape="\\"))
    if slot_number is not None:
        q = q.filter(ParkingEntry.slot_number == slot_number)
    if date_from:
        q = q.filter(ParkingEntry.entry_time >= datetime.combine(date_from, time.min))
    if date_to:
        q = q.filter(ParkingEntry.entry_time < datetime.combine(date_to, time.min) + timedelta(days=1))
    return q.order_by(ParkingEntry.entry_time.desc()).limit(limit).all()
