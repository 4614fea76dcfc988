# app/routers/entries.py
"""Vehicle entry and checkout endpoints."""

from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.parking_entry import EntryStatus
from app.schemas.parking_entry import BillOut, CheckoutOut, CheckoutRequest, EntryCreate, EntryOut
from app.services import entry_service

router = APIRouter()


def _checkout_out(result) -> CheckoutOut:
    return CheckoutOut(entry=EntryOut.model_validate(result.entry), bill=BillOut.model_validate(result.bill))


@router.post("/entries", response_model=EntryOut, status_code=201, summary="Register a vehicle entry")
def create_entry(body: EntryCreate, db: Session = Depends(get_db)):
    """Assigns the lowest free slot. 409 when the lot is full or settings are missing."""
    return entry_service.create_entry(db, body.vehicle_number, body.vehicle_type, body.owner_name)


@router.get("/entries", response_model=list[EntryOut], summary="List entries, newest first")
def list_entries(status: Optional[EntryStatus] = None, limit: int = 50, db: Session = Depends(get_db)):
    return entry_service.list_entries(db, status=status, limit=limit)


@router.get("/entries/checkout/preview", response_model=CheckoutOut, summary="Bill as of now, not committed")
def preview_checkout(vehicle_number: str, db: Session = Depends(get_db)):
    return _checkout_out(entry_service.preview_checkout(db, vehicle_number))


@router.post("/entries/checkout", response_model=CheckoutOut, summary="Check out a parked vehicle")
def checkout(body: CheckoutRequest, db: Session = Depends(get_db)):
    """Bills the stay and marks the entry Exited. 409 if it already checked out."""
    return _checkout_out(entry_service.checkout(db, body.vehicle_number))


@router.get("/entries/{entry_id}", response_model=EntryOut)
def get_entry(entry_id: int, db: Session = Depends(get_db)):
    return entry_service.get_entry(db, entry_id)


@router.post("/entries/{entry_id}/checkout", response_model=CheckoutOut, summary="Check out by entry id")
def checkout_entry(entry_id: int, db: Session = Depends(get_db)):
    return _checkout_out(entry_service.checkout_entry(db, entry_id))
