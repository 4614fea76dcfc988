# app/routers/settings.py
"""Admin settings: total slots and hourly rate."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.exceptions import SettingsMissing
from app.schemas.settings import SettingsOut, SettingsUpdate
from app.services import settings_service

router = APIRouter()


@router.get("/settings", response_model=SettingsOut, summary="Current lot settings")
def get_settings(db: Session = Depends(get_db)):
    row = settings_service.get_settings_row(db)
    if row is None:
        raise SettingsMissing()
    return row


@router.put("/settings", response_model=SettingsOut, summary="Create or update lot settings")
def put_settings(body: SettingsUpdate, db: Session = Depends(get_db)):
    """
    Set total slots and rate per hour. Creates the settings on first call.
    Lowering total slots below a slot that is still in use is rejected.
    """
    return settings_service.update_settings(db, body.total_slots, body.rate_per_hour)
