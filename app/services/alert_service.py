"""
Shared alert creation service.
Used by entry_service, reservation_service and occupancy_service.
Extend here to add push notifications, SMS, email, etc.
"""

from datetime import timedelta
from typing import Optional
from sqlalchemy.orm import Session
from app.config import settings
from app.exceptions import AlertNotFound, LedgerIntegrityError
from app.models.alert import Alert
from app.utils.clock import utcnow
from app.utils.logger import get_logger

logger = get_logger(__name__)


def create_alert(db: Session, alert_type: str, description: str,
                 slot_number: Optional[int] = None, vehicle_number: Optional[str] = None):
    """Create and persist an alert record. Always commits immediately."""
    alert = Alert(alert_type=alert_type, slot_number=slot_number, vehicle_number=vehicle_number,
                  description=description, is_resolved=0, triggered_at=utcnow())
    db.add(alert)
    db.commit()
    logger.warning(f"[ALERT][{alert_type.upper()}] {description}")
    return alert


def has_recent_alert(db: Session, alert_type: str, now=None) -> bool:
    """True when an unresolved alert of this type fired within the cooldown window."""
    cooldown = timedelta(seconds=settings.ALERT_COOLDOWN_SECONDS)
    since = (now or utcnow()) - cooldown
    recent = db.query(Alert).filter(
        Alert.alert_type == alert_type, Alert.is_resolved == 0,
        Alert.triggered_at >= since,
    ).first()
    return recent is not None


def report_integrity_error(db: Session, description: str,
                           slot_number: Optional[int] = None,
                           vehicle_number: Optional[str] = None) -> LedgerIntegrityError:
    """
    Roll back the pending transaction, record an integrity_error alert and
    return the exception for the caller to raise.
    """
    db.rollback()
    logger.error(f"[INTEGRITY] {description}")
    create_alert(db, "integrity_error", description, slot_number=slot_number, vehicle_number=vehicle_number)
    return LedgerIntegrityError(description)


def list_alerts(db: Session, alert_type: Optional[str] = None,
                is_resolved: Optional[int] = None, limit: int = 50):
    q = db.query(Alert)
    if alert_type:
        q = q.filter(Alert.alert_type == alert_type)
    if is_resolved is not None:
        q = q.filter(Alert.is_resolved == is_resolved)
    return q.order_by(Alert.triggered_at.desc(), Alert.id.desc()).limit(limit).all()


def resolve_alert(db: Session, alert_id: int, now=None) -> Alert:
    """Mark an alert handled. Resolving twice keeps the first resolved_at."""
    alert = db.query(Alert).filter(Alert.id == alert_id).first()
    if alert is None:
        raise AlertNotFound(f"Alert {alert_id} not found")
    if not alert.is_resolved:
        alert.is_resolved = 1
        alert.resolved_at = now or utcnow()
        db.commit()
        db.refresh(alert)
        logger.info(f"[ALERT] #{alert_id} resolved")
    return alert
