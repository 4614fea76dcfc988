# app/routers/occupancy.py
"""Occupancy ledger: current slot availability."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.availability import AvailabilityOut
from app.services.occupancy_service import get_availability, active_claims

router = APIRouter()


@router.get("/availability", response_model=AvailabilityOut, summary="Total / occupied / reserved / available")
def availability(db: Session = Depends(get_db)):
    """Recomputed from parked entries and open reservations on every call."""
    return AvailabilityOut.model_validate(get_availability(db))


@router.get("/availability/slots", summary="Claimed slot numbers")
def claimed_slots(db: Session = Depends(get_db)):
    return {"claimed": sorted(active_claims(db))}
