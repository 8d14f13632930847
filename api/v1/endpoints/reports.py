"""
Hotel API - Report Endpoints
============================

Admin-only, read-only aggregations. Dates default to the last month.
"""

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from api.deps import get_db, require_admin

from reports import EXPORT_COLUMNS, EXPORT_REPORTS, ReportService, rows_to_csv

router = APIRouter(dependencies=[Depends(require_admin)])


def _period(
    start_date: Optional[date] = Query(default=None, description="Defaults to one month ago"),
    end_date: Optional[date] = Query(default=None, description="Defaults to today"),
):
    return start_date, end_date


@router.get("/dashboard", summary="Dashboard Summary")
def dashboard(db: Session = Depends(get_db)):
    return ReportService.dashboard_summary(db)


@router.get("/bookings", summary="Booking Summary")
def booking_summary(period=Depends(_period), db: Session = Depends(get_db)):
    return ReportService.booking_summary(db, *period)


@router.get("/occupancy", summary="Room Occupancy")
def room_occupancy(period=Depends(_period), db: Session = Depends(get_db)):
    return ReportService.room_occupancy(db, *period)


@router.get("/revenue-by-room-type", summary="Revenue by Room Type")
def revenue_by_room_type(period=Depends(_period), db: Session = Depends(get_db)):
    return ReportService.revenue_by_room_type(db, *period)


@router.get("/service-usage", summary="Service Usage")
def service_usage(period=Depends(_period), db: Session = Depends(get_db)):
    return ReportService.service_usage(db, *period)


@router.get("/customer-statistics", summary="Customer Statistics")
def customer_statistics(period=Depends(_period), db: Session = Depends(get_db)):
    return ReportService.customer_statistics(db, *period)


@router.get(
    "/yearly-financial",
    summary="Yearly Financial Report",
    description="Monthly room and service revenue for a year (defaults to the current year)."
)
def yearly_financial(year: Optional[int] = Query(default=None), db: Session = Depends(get_db)):
    return ReportService.yearly_financial(db, year)


@router.get(
    "/export",
    summary="Export Report",
    description="Row-per-record report data as JSON or as a CSV attachment."
)
def export_report(
    report_type: str = Query(..., description=", ".join(EXPORT_REPORTS)),
    format: Literal["json", "csv"] = Query(default="json"),
    period=Depends(_period),
    db: Session = Depends(get_db),
):
    name, rows = ReportService.export_rows(db, report_type, *period)
    if format == "csv":
        filename = f"{name}_{date.today().isoformat()}.csv"
        return Response(
            content=rows_to_csv(rows, EXPORT_COLUMNS[report_type]),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    return {"report_type": report_type, "data": rows}
