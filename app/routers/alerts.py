# app/routers/alerts.py
"""Occupancy and ledger-integrity alerts raised by the desk services."""

from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.alert import AlertOut
from app.services import alert_service

router = APIRouter()


@router.get("/alerts", response_model=list[AlertOut], summary="Alerts, newest first")
def list_alerts(alert_type: Optional[str] = None, is_resolved: Optional[int] = None,
                limit: int = 50, db: Session = Depends(get_db)):
    """alert_type is `occupancy_full` or `integrity_error`; is_resolved is 0 or 1."""
    return alert_service.list_alerts(db, alert_type=alert_type, is_resolved=is_resolved, limit=limit)


@router.put("/alerts/{alert_id}/resolve", response_model=AlertOut, summary="Resolve an alert")
def resolve(alert_id: int, db: Session = Depends(get_db)):
    return alert_service.resolve_alert(db, alert_id)
