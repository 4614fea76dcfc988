from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import Optional
from app.models.parking_entry import EntryStatus, ReservationFlag, VehicleType


class EntryCreate(BaseModel):
    vehicle_number: str
    vehicle_type: VehicleType      # Bike | Car
    owner_name: str


class CheckoutRequest(BaseModel):
    vehicle_number: str


class EntryOut(BaseModel):
    id: int
    vehicle_number: str
    owner_name: str
    vehicle_type: VehicleType
    entry_time: datetime
    exit_time: Optional[datetime]
    slot_number: int
    status: EntryStatus
    reservation_flag: ReservationFlag
    reservation_id: Optional[int]
    duration_hours: Optional[int]
    total_amount: Optional[Decimal]

    class Config:
        from_attributes = True


class BillOut(BaseModel):
    entry_time: datetime
    exit_time: datetime
    duration_minutes: int
    duration_hours: int
    rate_per_hour: Decimal
    total_amount: Decimal

    class Config:
        from_attributes = True


class CheckoutOut(BaseModel):
    entry: EntryOut
    bill: BillOut

    class Config:
        from_attributes = True
