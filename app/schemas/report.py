from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from app.schemas.availability import AvailabilityOut
from app.schemas.parking_entry import EntryOut


class HourlyCount(BaseModel):
    hour: str
    vehicles: int


class ReportSummaryOut(BaseModel):
    period: str
    start: datetime
    end: datetime
    total_vehicles: int
    exited_vehicles: int
    total_revenue: Decimal
    reserved_count: int
    walkin_count: int
    vehicle_types: dict[str, int]
    hourly: list[HourlyCount]


class DashboardOut(BaseModel):
    availability: AvailabilityOut
    today_entries: int
    today_revenue: Decimal
    recent_parked: list[EntryOut]
