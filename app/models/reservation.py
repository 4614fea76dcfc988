"""
Reservations table.
A Reserved row holds its slot without a vehicle present; every other status is terminal.
"""

import enum

from sqlalchemy import Column, Integer, String, DateTime, Enum, Index, text
from app.database import Base


class ReservationStatus(str, enum.Enum):
    RESERVED = "Reserved"
    FULFILLED = "Fulfilled"
    CANCELLED = "Cancelled"
    EXPIRED = "Expired"


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        Index(
            "uq_reservations_reserved_slot",
            "slot_number",
            unique=True,
            postgresql_where=text("status = 'Reserved'"),
            sqlite_where=text("status = 'Reserved'"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    slot_number = Column(Integer, nullable=False)
    reservation_datetime = Column(DateTime, nullable=False, index=True)
    vehicle_number = Column(String(50))
    owner_name = Column(String(200))
    status = Column(
        Enum(ReservationStatus, native_enum=False, length=10,
             values_callable=lambda cls: [m.value for m in cls]),
        nullable=False, default=ReservationStatus.RESERVED, index=True,
    )
    created_at = Column(DateTime, nullable=False)
    closed_at = Column(DateTime)            # set on any terminal transition

    def __repr__(self):
        return f"<Reservation {self.id} slot={self.slot_number} status={self.status}>"
