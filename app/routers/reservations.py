# app/routers/reservations.py
"""Reservation endpoints: hold, cancel, check in, expire."""

from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.reservation import ReservationStatus
from app.schemas.parking_entry import EntryOut
from app.schemas.reservation import ReservationCheckIn, ReservationCreate, ReservationOut
from app.services import reservation_service

router = APIRouter()


@router.post("/reservations", response_model=ReservationOut, status_code=201, summary="Reserve a slot")
def create_reservation(body: ReservationCreate, db: Session = Depends(get_db)):
    """Holds the requested slot, or the lowest free one when none is given."""
    return reservation_service.create_reservation(
        db, body.reservation_datetime, slot_number=body.slot_number,
        vehicle_number=body.vehicle_number, owner_name=body.owner_name,
    )


@router.get("/reservations", response_model=list[ReservationOut], summary="List reservations")
def list_reservations(status: Optional[ReservationStatus] = None, limit: int = 50,
                      db: Session = Depends(get_db)):
    return reservation_service.list_reservations(db, status=status, limit=limit)


@router.put("/reservations/{reservation_id}/cancel", response_model=ReservationOut)
def cancel_reservation(reservation_id: int, db: Session = Depends(get_db)):
    return reservation_service.cancel_reservation(db, reservation_id)


@router.post("/reservations/{reservation_id}/check-in", response_model=EntryOut, status_code=201,
             summary="Park the reserved vehicle on its slot")
def check_in(reservation_id: int, body: ReservationCheckIn, db: Session = Depends(get_db)):
    return reservation_service.check_in_reservation(
        db, reservation_id, body.vehicle_number, body.vehicle_type, body.owner_name
    )


@router.post("/reservations/expire", summary="Expire reservations past their grace period")
def expire_reservations(db: Session = Depends(get_db)):
    expired = reservation_service.expire_overdue_reservations(db)
    return {"expired": len(expired), "slots": [r.slot_number for r in expired]}
