from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import Optional


class SettingsUpdate(BaseModel):
    total_slots: int
    rate_per_hour: Decimal


class SettingsOut(BaseModel):
    id: int
    total_slots: int
    rate_per_hour: Decimal
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
