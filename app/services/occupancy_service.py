"""
Occupancy ledger: which slots are claimed right now, and by what.

Claims are never counted incrementally. Every read projects them from the
Parked entries and Reserved reservations currently in the database.

New claims go through claim_slot(), which runs "read claims, pick slot,
persist record" under claim_guard: a process-wide lock plus a row lock on
the parking_settings row, so allocators in other workers wait on PostgreSQL.
The partial unique indexes on both tables back this up; a conflict they
catch is rolled back and the allocation retried.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.config import settings
from app.exceptions import SlotUnavailable
from app.models.parking_entry import ParkingEntry, EntryStatus
from app.models.reservation import Reservation, ReservationStatus
from app.services.alert_service import report_integrity_error
from app.services.settings_service import ParkingConfiguration, load_configuration
from app.services.slot_allocator import allocate, allocate_specific
from app.utils.logger import get_logger

logger = get_logger(__name__)

allocation_lock = threading.Lock()


@dataclass
class Availability:
    total: int
    occupied: int
    reserved: int
    available: int
    occupancy_percent: float


def occupied_slots(db: Session) -> set:
    rows = db.query(ParkingEntry.slot_number).filter(ParkingEntry.status == EntryStatus.PARKED).all()
    return {row[0] for row in rows}


def reserved_slots(db: Session) -> set:
    rows = db.query(Reservation.slot_number).filter(Reservation.status == ReservationStatus.RESERVED).all()
    return {row[0] for row in rows}


def active_claims(db: Session) -> set:
    """Union of occupied and reserved slot numbers. Read-only."""
    occupied = occupied_slots(db)
    reserved = reserved_slots(db)
    overlap = occupied & reserved
    if overlap:
        logger.error(f"[LEDGER] Slots claimed by both an entry and a reservation: {sorted(overlap)}")
    return occupied | reserved


def available_count(db: Session, config: ParkingConfiguration) -> int:
    """Free slots, saturated at zero."""
    free = config.total_slots - len(active_claims(db))
    if free < 0:
        logger.warning(f"[LEDGER] Claims exceed capacity by {-free}")
    return max(0, free)


def get_availability(db: Session) -> Availability:
    config = load_configuration(db)
    occupied = occupied_slots(db)
    reserved = reserved_slots(db)
    claimed = len(occupied | reserved)
    return Availability(
        total=config.total_slots,
        occupied=len(occupied),
        reserved=len(reserved),
        available=max(0, config.total_slots - claimed),
        occupancy_percent=round(len(occupied) / config.total_slots * 100, 1) if config.total_slots else 0.0,
    )


@contextmanager
def claim_guard(db: Session):
    """
    Serialise allocators. Yields the locked configuration.
    Any exception rolls the session back before the lock is released.
    """
    with allocation_lock:
        try:
            yield load_configuration(db, for_update=True)
        except Exception:
            db.rollback()
            raise


def claim_slot(db: Session, make_record: Callable, requested_slot: Optional[int] = None):
    """
    Allocate a slot and persist the record built by make_record(slot, config)
    in one transaction. Lowest free slot unless requested_slot is given.
    """
    attempts = max(1, settings.ALLOCATION_MAX_RETRIES)
    for attempt in range(1, attempts + 1):
        with claim_guard(db) as config:
            claims = active_claims(db)
            if requested_slot is None:
                slot = allocate(claims, config.total_slots)
            else:
                slot = allocate_specific(claims, config.total_slots, requested_slot)
            record = make_record(slot, config)
            db.add(record)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.warning(f"[LEDGER] Slot {slot} was claimed concurrently (attempt {attempt}/{attempts})")
                if requested_slot is not None:
                    raise SlotUnavailable(f"Slot {requested_slot} is already taken")
                continue
        db.refresh(record)
        return record

    raise report_integrity_error(
        db,
        f"Slot allocation conflicted {attempts} time(s) in a row",
        slot_number=requested_slot,
    )
