"""
Singleton lot configuration table.
One row at most: total slot count and hourly rate, edited by the administrator.
Read by the slot allocator (via claim_guard) and the billing engine.
"""

from sqlalchemy import Column, Integer, Numeric, DateTime
from app.database import Base


class ParkingSettings(Base):
    __tablename__ = "parking_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    total_slots = Column(Integer, nullable=False)
    rate_per_hour = Column(Numeric(10, 2), nullable=False)
    updated_at = Column(DateTime)

    def __repr__(self):
        return f"<ParkingSettings slots={self.total_slots} rate={self.rate_per_hour}>"
