"""
Entry lifecycle: Parked on creation, Exited on checkout, never back.

How it works:
  - create_entry validates the desk form, then claims the lowest free slot
    through occupancy_service.claim_slot (atomic with the insert)
  - checkout finds the single Parked entry for a vehicle number
    (case-insensitive), bills it, and flips it to Exited with a conditional
    UPDATE so a second checkout can never bill twice
  - the freed slot is not released explicitly: the ledger stops counting it
    as soon as the status is Exited
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from app.config import settings
from app.exceptions import (
    AlreadyExited, EntryNotFound, LedgerIntegrityError, ValidationError, VehicleAlreadyParked,
)
from app.models.parking_entry import ParkingEntry, EntryStatus, ReservationFlag, VehicleType
from app.services.alert_service import create_alert, has_recent_alert, report_integrity_error
from app.services.billing_service import Bill, compute_bill
from app.services.occupancy_service import claim_slot, get_availability
from app.services.settings_service import load_configuration
from app.utils.clock import utcnow
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class EntryForm:
    vehicle_number: str
    vehicle_type: VehicleType
    owner_name: str


@dataclass
class CheckoutResult:
    entry: ParkingEntry
    bill: Bill


def normalize_vehicle_number(vehicle_number: Optional[str]) -> str:
    return (vehicle_number or "").strip().upper()


def validate_entry_form(vehicle_number, vehicle_type, owner_name) -> EntryForm:
    number = normalize_vehicle_number(vehicle_number)
    owner = (owner_name or "").strip()
    if not number or not owner or not vehicle_type:
        raise ValidationError("All fields are required")
    try:
        kind = VehicleType(vehicle_type)
    except ValueError:
        matches = [t for t in VehicleType if t.value.lower() == str(vehicle_type).strip().lower()]
        if not matches:
            raise ValidationError(f"Vehicle type must be one of: {', '.join(t.value for t in VehicleType)}")
        kind = matches[0]
    return EntryForm(vehicle_number=number, vehicle_type=kind, owner_name=owner)


def _by_vehicle(vehicle_number: str):
    return func.upper(ParkingEntry.vehicle_number) == normalize_vehicle_number(vehicle_number)


def ensure_not_parked(db: Session, vehicle_number: str):
    parked = db.query(ParkingEntry.slot_number).filter(
        _by_vehicle(vehicle_number), ParkingEntry.status == EntryStatus.PARKED
    ).first()
    if parked:
        raise VehicleAlreadyParked(f"Vehicle {vehicle_number} is already parked in slot {parked[0]}")


def create_entry(db: Session, vehicle_number, vehicle_type, owner_name,
                 now: Optional[datetime] = None) -> ParkingEntry:
    """Register an arriving vehicle on the lowest free slot."""
    form = validate_entry_form(vehicle_number, vehicle_type, owner_name)
    entry_time = now or utcnow()

    def make_entry(slot, config):
        ensure_not_parked(db, form.vehicle_number)
        return ParkingEntry(
            vehicle_number=form.vehicle_number,
            vehicle_type=form.vehicle_type,
            owner_name=form.owner_name,
            entry_time=entry_time,
            slot_number=slot,
            status=EntryStatus.PARKED,
            reservation_flag=ReservationFlag.NO,
        )

    entry = claim_slot(db, make_entry)
    logger.info(f"[ENTRY] {entry.vehicle_number} ({entry.vehicle_type.value}) → slot {entry.slot_number}")
    check_capacity_alert(db)
    return entry


def check_capacity_alert(db: Session):
    """Raise an occupancy_full alert once the lot crosses OCCUPANCY_ALERT_THRESHOLD."""
    availability = get_availability(db)
    if not availability.total:
        return
    used = availability.total - availability.available
    if used / availability.total < settings.OCCUPANCY_ALERT_THRESHOLD:
        return
    if has_recent_alert(db, "occupancy_full"):
        return
    create_alert(db, "occupancy_full",
                 f"Lot at {int(used / availability.total * 100)}% capacity ({availability.available} free)")


def find_parked_entry(db: Session, vehicle_number: str) -> ParkingEntry:
    """
    The one Parked entry for this vehicle number.
    None parked but an earlier visit exists → AlreadyExited; no visit at all → EntryNotFound.
    """
    number = normalize_vehicle_number(vehicle_number)
    if not number:
        raise ValidationError("Please enter a vehicle number")

    matches = db.query(ParkingEntry).filter(
        _by_vehicle(number), ParkingEntry.status == EntryStatus.PARKED
    ).all()
    if len(matches) > 1:
        raise report_integrity_error(
            db, f"Vehicle {number} is parked {len(matches)} times (slots {[m.slot_number for m in matches]})",
            vehicle_number=number,
        )
    if matches:
        return matches[0]

    exited = db.query(ParkingEntry.id).filter(
        _by_vehicle(number), ParkingEntry.status == EntryStatus.EXITED
    ).first()
    if exited:
        raise AlreadyExited(f"Vehicle {number} has already checked out")
    raise EntryNotFound(f"Vehicle {number} not found")


def _bill_for(db: Session, entry: ParkingEntry, exit_time: datetime) -> Bill:
    config = load_configuration(db)
    try:
        return compute_bill(entry.entry_time, exit_time, config.rate_per_hour,
                            minimum_hours=settings.MINIMUM_BILLABLE_HOURS)
    except LedgerIntegrityError as exc:
        raise report_integrity_error(db, f"Entry {entry.id}: {exc}",
                                     slot_number=entry.slot_number, vehicle_number=entry.vehicle_number)


def checkout_transition(status: EntryStatus, bill: Bill) -> dict:
    """Column values for the Parked → Exited transition. Exited has no outgoing transition."""
    if status is EntryStatus.PARKED:
        return {
            ParkingEntry.status: EntryStatus.EXITED,
            ParkingEntry.exit_time: bill.exit_time,
            ParkingEntry.duration_hours: bill.duration_hours,
            ParkingEntry.total_amount: bill.total_amount,
        }
    if status is EntryStatus.EXITED:
        raise AlreadyExited("Vehicle has already checked out")
    raise LedgerIntegrityError(f"Unknown entry status {status!r}")


def _commit_checkout(db: Session, entry: ParkingEntry, now: Optional[datetime]) -> CheckoutResult:
    bill = _bill_for(db, entry, now or utcnow())
    values = checkout_transition(EntryStatus(entry.status), bill)

    updated = (
        db.query(ParkingEntry)
        .filter(ParkingEntry.id == entry.id, ParkingEntry.status == EntryStatus.PARKED)
        .update(values, synchronize_session=False)
    )
    if updated != 1:
        db.rollback()
        raise AlreadyExited(f"Vehicle {entry.vehicle_number} has already checked out")
    db.commit()
    db.refresh(entry)

    logger.info(
        f"[CHECKOUT] {entry.vehicle_number} slot {entry.slot_number} | "
        f"{bill.duration_minutes} min → {bill.duration_hours} h × {bill.rate_per_hour} = {bill.total_amount}"
    )
    return CheckoutResult(entry=entry, bill=bill)


def checkout(db: Session, vehicle_number: str, now: Optional[datetime] = None) -> CheckoutResult:
    """Bill and exit the vehicle currently parked under this number."""
    entry = find_parked_entry(db, vehicle_number)
    return _commit_checkout(db, entry, now)


def checkout_entry(db: Session, entry_id: int, now: Optional[datetime] = None) -> CheckoutResult:
    entry = db.query(ParkingEntry).filter(ParkingEntry.id == entry_id).first()
    if not entry:
        raise EntryNotFound(f"Entry {entry_id} not found")
    if entry.status is EntryStatus.EXITED:
        raise AlreadyExited(f"Entry {entry_id} has already checked out")
    return _commit_checkout(db, entry, now)


def preview_checkout(db: Session, vehicle_number: str, now: Optional[datetime] = None) -> CheckoutResult:
    """Bill as it would stand at `now`, without committing anything."""
    entry = find_parked_entry(db, vehicle_number)
    return CheckoutResult(entry=entry, bill=_bill_for(db, entry, now or utcnow()))


def list_entries(db: Session, status: Optional[str] = None, limit: int = 50):
    q = db.query(ParkingEntry)
    if status:
        q = q.filter(ParkingEntry.status == EntryStatus(status))
    return q.order_by(ParkingEntry.entry_time.desc()).limit(limit).all()


def get_entry(db: Session, entry_id: int) -> ParkingEntry:
    entry = db.query(ParkingEntry).filter(ParkingEntry.id == entry_id).first()
    if not entry:
        raise EntryNotFound(f"Entry {entry_id} not found")
    return entry
