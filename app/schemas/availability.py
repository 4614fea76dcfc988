from pydantic import BaseModel


class AvailabilityOut(BaseModel):
    total: int
    occupied: int
    reserved: int
    available: int
    occupancy_percent: float

    class Config:
        from_attributes = True
