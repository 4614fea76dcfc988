"""
Capacity configuration: the singleton parking_settings row.

Services never read the row ad hoc; they take a ParkingConfiguration value
from load_configuration() (or claim_guard) and pass it into the allocator
and the billing engine.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from sqlalchemy.orm import Session
from app.exceptions import SettingsMissing, ValidationError
from app.models.parking_settings import ParkingSettings
from app.utils.clock import utcnow
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ParkingConfiguration:
    total_slots: int
    rate_per_hour: Decimal

    @classmethod
    def from_row(cls, row: ParkingSettings) -> "ParkingConfiguration":
        return cls(total_slots=int(row.total_slots), rate_per_hour=Decimal(str(row.rate_per_hour)))


def get_settings_row(db: Session, for_update: bool = False):
    q = db.query(ParkingSettings).order_by(ParkingSettings.id)
    if for_update:
        q = q.with_for_update()
    return q.first()


def load_configuration(db: Session, for_update: bool = False) -> ParkingConfiguration:
    """Current configuration value. Raises SettingsMissing if the admin has not set one."""
    row = get_settings_row(db, for_update=for_update)
    if row is None:
        raise SettingsMissing()
    return ParkingConfiguration.from_row(row)


def validate_settings(total_slots, rate_per_hour):
    if total_slots is None or rate_per_hour is None:
        raise ValidationError("All fields are required")
    try:
        slots = int(total_slots)
        rate = Decimal(str(rate_per_hour))
    except (TypeError, ValueError, InvalidOperation):
        raise ValidationError("Total slots and parking rate must be numbers")
    if slots <= 0:
        raise ValidationError("Total slots must be greater than 0")
    if not rate.is_finite() or rate <= 0:
        raise ValidationError("Parking rate must be greater than 0")
    return slots, rate


def update_settings(db: Session, total_slots, rate_per_hour) -> ParkingSettings:
    """
    Create the settings row or update it in place.
    Refuses to shrink the lot below the highest slot that is currently claimed.
    """
    from app.services.occupancy_service import active_claims, allocation_lock

    slots, rate = validate_settings(total_slots, rate_per_hour)

    with allocation_lock:
        row = get_settings_row(db, for_update=True)
        claims = active_claims(db)
        if claims and max(claims) > slots:
            db.rollback()
            raise ValidationError(
                f"Slot {max(claims)} is still in use; total slots cannot be lowered to {slots}"
            )
        if row is None:
            row = ParkingSettings(total_slots=slots, rate_per_hour=rate, updated_at=utcnow())
            db.add(row)
            logger.info(f"[SETTINGS] Created: {slots} slots @ {rate}/h")
        else:
            row.total_slots = slots
            row.rate_per_hour = rate
            row.updated_at = utcnow()
            logger.info(f"[SETTINGS] Updated: {slots} slots @ {rate}/h")
        db.commit()
    db.refresh(row)
    return row
