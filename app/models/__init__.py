# ParkDesk: Database Models
# Import all models here for SQLAlchemy discovery

from app.models.parking_settings import ParkingSettings   # noqa
from app.models.parking_entry import ParkingEntry         # noqa
from app.models.reservation import Reservation            # noqa
from app.models.alert import Alert                        # noqa
