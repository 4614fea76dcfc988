"""
Alerts table: occupancy and ledger-integrity alerts.
Written by alert_service; listed and resolved through the alerts router.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text
from app.database import Base


class Alert(Base):
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    alert_type = Column(String(50), nullable=False, index=True)   # occupancy_full | integrity_error
    slot_number = Column(Integer)
    vehicle_number = Column(String(50))
    description = Column(Text)
    is_resolved = Column(Integer, default=0, nullable=False)
    triggered_at = Column(DateTime, nullable=False, index=True)
    resolved_at = Column(DateTime)

    def __repr__(self):
        return f"<Alert {self.id} type={self.alert_type} resolved={self.is_resolved}>"
