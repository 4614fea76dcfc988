# app/routers/health.py
"""Liveness probe for the desk UI: database reachability plus a ledger snapshot."""

from dataclasses import asdict
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session
from app.database import get_db
from app.services.occupancy_service import get_availability
from app.services.settings_service import get_settings_row
from app.utils.clock import utcnow
from app.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("/health", summary="Backend, database and lot status")
def health_check(db: Session = Depends(get_db)):
    """
    `configured` is false until PUT /settings has been called once.
    When configured, `availability` carries the same counts as GET /availability.
    """
    body = {"status": "ok", "timestamp": utcnow().isoformat(), "database": "unknown",
            "configured": False, "availability": None}
    try:
        db.execute(text("SELECT 1"))
        body["database"] = "ok"
        if get_settings_row(db) is not None:
            body["configured"] = True
            body["availability"] = asdict(get_availability(db))
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        body["database"] = f"error: {e}"
        body["status"] = "degraded"
    return body
