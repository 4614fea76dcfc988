"""
Reservation lifecycle.

Reserved is the only open state; it holds a slot in the ledger with no
vehicle present. From there a reservation is either checked in (Fulfilled,
and a Parked entry takes over the same slot in the same transaction),
cancelled, or expired by expire_overdue_reservations(). Expiry never
happens implicitly on a read.
"""

from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.config import settings
from app.exceptions import ReservationClosed, ReservationNotFound, ValidationError
from app.models.parking_entry import ParkingEntry, EntryStatus, ReservationFlag
from app.models.reservation import Reservation, ReservationStatus
from app.services.alert_service import report_integrity_error
from app.services.entry_service import (
    check_capacity_alert, ensure_not_parked, normalize_vehicle_number, validate_entry_form,
)
from app.services.occupancy_service import claim_guard, claim_slot
from app.utils.clock import as_naive_utc, utcnow
from app.utils.logger import get_logger

logger = get_logger(__name__)


def create_reservation(db: Session, reservation_datetime: datetime, slot_number: Optional[int] = None,
                       vehicle_number: Optional[str] = None, owner_name: Optional[str] = None,
                       now: Optional[datetime] = None) -> Reservation:
    """Hold a slot: the requested one if free, otherwise the lowest free slot."""
    if reservation_datetime is None:
        raise ValidationError("Reservation date and time is required")
    reservation_datetime = as_naive_utc(reservation_datetime)
    created_at = now or utcnow()
    number = normalize_vehicle_number(vehicle_number) or None
    owner = (owner_name or "").strip() or None

    def make_reservation(slot, config):
        return Reservation(
            slot_number=slot,
            reservation_datetime=reservation_datetime,
            vehicle_number=number,
            owner_name=owner,
            status=ReservationStatus.RESERVED,
            created_at=created_at,
        )

    reservation = claim_slot(db, make_reservation, requested_slot=slot_number)
    logger.info(
        f"[RESERVATION] #{reservation.id} slot {reservation.slot_number} for "
        f"{reservation.reservation_datetime.isoformat()} ({reservation.vehicle_number or 'no plate'})"
    )
    check_capacity_alert(db)
    return reservation


def get_reservation(db: Session, reservation_id: int, for_update: bool = False) -> Reservation:
    q = db.query(Reservation).filter(Reservation.id == reservation_id)
    if for_update:
        q = q.with_for_update()
    reservation = q.first()
    if not reservation:
        raise ReservationNotFound(f"Reservation {reservation_id} not found")
    return reservation


def _ensure_open(reservation: Reservation):
    if reservation.status is not ReservationStatus.RESERVED:
        raise ReservationClosed(f"Reservation {reservation.id} is already {reservation.status.value}")


def cancel_reservation(db: Session, reservation_id: int, now: Optional[datetime] = None) -> Reservation:
    reservation = get_reservation(db, reservation_id, for_update=True)
    _ensure_open(reservation)
    reservation.status = ReservationStatus.CANCELLED
    reservation.closed_at = now or utcnow()
    db.commit()
    db.refresh(reservation)
    logger.info(f"[RESERVATION] #{reservation.id} cancelled, slot {reservation.slot_number} released")
    return reservation


def check_in_reservation(db: Session, reservation_id: int, vehicle_number, vehicle_type, owner_name,
                         now: Optional[datetime] = None) -> ParkingEntry:
    """The reserved vehicle arrives: park it on the reserved slot and close the reservation."""
    form = validate_entry_form(vehicle_number, vehicle_type, owner_name)
    entry_time = now or utcnow()

    with claim_guard(db):
        reservation = get_reservation(db, reservation_id, for_update=True)
        _ensure_open(reservation)
        ensure_not_parked(db, form.vehicle_number)

        entry = ParkingEntry(
            vehicle_number=form.vehicle_number,
            vehicle_type=form.vehicle_type,
            owner_name=form.owner_name,
            entry_time=entry_time,
            slot_number=reservation.slot_number,
            status=EntryStatus.PARKED,
            reservation_flag=ReservationFlag.YES,
            reservation_id=reservation.id,
        )
        reservation.status = ReservationStatus.FULFILLED
        reservation.closed_at = entry_time
        db.add(entry)
        try:
            db.commit()
        except IntegrityError:
            raise report_integrity_error(
                db, f"Reserved slot {reservation.slot_number} already holds a parked vehicle",
                slot_number=reservation.slot_number, vehicle_number=form.vehicle_number,
            )

    db.refresh(entry)
    logger.info(f"[RESERVATION] #{reservation_id} checked in: {entry.vehicle_number} → slot {entry.slot_number}")
    return entry


def overdue_reservations(db: Session, cutoff: datetime) -> list:
    return db.query(Reservation).filter(
        Reservation.status == ReservationStatus.RESERVED,
        Reservation.reservation_datetime < cutoff,
    ).order_by(Reservation.id).all()


def expire_overdue_reservations(db: Session, now: Optional[datetime] = None) -> list:
    """
    Expire Reserved rows more than RESERVATION_GRACE_MINUTES past their time.
    Each row is moved with an UPDATE guarded on status = 'Reserved', so a
    check-in or cancel that commits first is left alone.
    """
    closed_at = now or utcnow()
    cutoff = closed_at - timedelta(minutes=settings.RESERVATION_GRACE_MINUTES)

    expired_ids = []
    for reservation in overdue_reservations(db, cutoff):
        updated = (
            db.query(Reservation)
            .filter(Reservation.id == reservation.id, Reservation.status == ReservationStatus.RESERVED)
            .update({"status": ReservationStatus.EXPIRED, "closed_at": closed_at}, synchronize_session=False)
        )
        if updated == 1:
            expired_ids.append(reservation.id)
        else:
            logger.info(f"[RESERVATION] #{reservation.id} closed by another desk before expiry, skipped")
    db.commit()

    if not expired_ids:
        return []
    expired = db.query(Reservation).filter(Reservation.id.in_(expired_ids)).order_by(Reservation.id).all()
    logger.info(f"[RESERVATION] Expired {len(expired)} overdue: slots {[r.slot_number for r in expired]}")
    return expired


def list_reservations(db: Session, status: Optional[ReservationStatus] = None, limit: int = 50):
    q = db.query(Reservation)
    if status:
        q = q.filter(Reservation.status == status)
    return q.order_by(Reservation.reservation_datetime.desc()).limit(limit).all()
