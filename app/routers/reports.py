# app/routers/reports.py
"""Dashboard, period reports, CSV export and entry search."""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.availability import AvailabilityOut
from app.schemas.parking_entry import EntryOut
from app.schemas.report import DashboardOut, ReportSummaryOut
from app.services import report_service
from app.utils.clock import utcnow

router = APIRouter()


@router.get("/reports/summary", response_model=ReportSummaryOut, summary="Daily / weekly / monthly summary")
def get_summary(period: str = "daily", db: Session = Depends(get_db)):
    """Vehicles, revenue, reservations, walk-ins, type split and hourly histogram."""
    return report_service.build_summary(db, period)


@router.get("/reports/export", summary="CSV of exited entries for the period")
def export_report(period: str = "daily", db: Session = Depends(get_db)):
    content = report_service.export_csv(db, period)
    filename = f"parking-report-{period}-{utcnow():%Y-%m-%d}.csv"
    return Response(content=content, media_type="text/csv",
                    headers={"Content-Disposition": f'attachment; filename="{filename}"'})


@router.get("/reports/dashboard", response_model=DashboardOut, summary="Front-desk dashboard")
def get_dashboard(db: Session = Depends(get_db)):
    data = report_service.build_dashboard(db)
    return DashboardOut(
        availability=AvailabilityOut.model_validate(data["availability"]),
        today_entries=data["today_entries"],
        today_revenue=data["today_revenue"],
        recent_parked=[EntryOut.model_validate(e) for e in data["recent_parked"]],
    )


@router.get("/search", response_model=list[EntryOut], summary="Search entries")
def search(vehicle_number: Optional[str] = None, owner_name: Optional[str] = None,
           slot_number: Optional[int] = None, date_from: Optional[date] = None,
           date_to: Optional[date] = None, limit: int = 100, db: Session = Depends(get_db)):
    """Partial, case-insensitive vehicle/owner match; exact slot; inclusive date range."""
    return report_service.search_entries(db, vehicle_number, owner_name, slot_number,
                                         date_from, date_to, limit)
