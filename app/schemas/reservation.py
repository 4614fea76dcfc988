from pydantic import BaseModel
from datetime import datetime
from typing import Optional
from app.models.parking_entry import VehicleType
from app.models.reservation import ReservationStatus


class ReservationCreate(BaseModel):
    reservation_datetime: datetime
    slot_number: Optional[int] = None      # lowest free slot when omitted
    vehicle_number: Optional[str] = None
    owner_name: Optional[str] = None


class ReservationCheckIn(BaseModel):
    vehicle_number: str
    vehicle_type: VehicleType
    owner_name: str


class ReservationOut(BaseModel):
    id: int
    slot_number: int
    reservation_datetime: datetime
    vehicle_number: Optional[str]
    owner_name: Optional[str]
    status: ReservationStatus
    created_at: datetime
    closed_at: Optional[datetime]

    class Config:
        from_attributes = True
