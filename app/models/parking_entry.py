"""
Parking entries table: one row per vehicle visit.
Created Parked by entry_service, flipped once to Exited by checkout, never deleted.
The partial unique index is the database-side guard for one Parked entry per slot.
"""

import enum

from sqlalchemy import Column, Integer, String, DateTime, Numeric, Enum, Index, text
from app.database import Base


class VehicleType(str, enum.Enum):
    BIKE = "Bike"
    CAR = "Car"


class EntryStatus(str, enum.Enum):
    PARKED = "Parked"
    EXITED = "Exited"


class ReservationFlag(str, enum.Enum):
    YES = "Yes"
    NO = "No"


def _values(enum_cls):
    return [member.value for member in enum_cls]


class ParkingEntry(Base):
    __tablename__ = "parking_entries"
    __table_args__ = (
        Index(
            "uq_parking_entries_parked_slot",
            "slot_number",
            unique=True,
            postgresql_where=text("status = 'Parked'"),
            sqlite_where=text("status = 'Parked'"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_number = Column(String(50), nullable=False, index=True)   # stored upper-case
    owner_name = Column(String(200), nullable=False)
    vehicle_type = Column(Enum(VehicleType, native_enum=False, length=10, values_callable=_values), nullable=False)
    entry_time = Column(DateTime, nullable=False, index=True)
    exit_time = Column(DateTime)
    slot_number = Column(Integer, nullable=False)
    status = Column(Enum(EntryStatus, native_enum=False, length=10, values_callable=_values),
                    nullable=False, default=EntryStatus.PARKED, index=True)
    reservation_flag = Column(Enum(ReservationFlag, native_enum=False, length=3, values_callable=_values),
                              nullable=False, default=ReservationFlag.NO)
    reservation_id = Column(Integer)          # reservations.id when checked in from a reservation
    duration_hours = Column(Integer)          # set on checkout
    total_amount = Column(Numeric(10, 2))     # set on checkout

    def __repr__(self):
        return f"<ParkingEntry {self.id} vehicle={self.vehicle_number} slot={self.slot_number} status={self.status}>"
