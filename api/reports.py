"""
Reports API Router
Endpoints for adherence dashboards
"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from api.deps import get_db, services
from api.schemas.report import (
    DashboardResponse,
    MedicationBreakdownResponse,
    DashboardList,
)


router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(medication_id: Optional[int] = None, db: Session = Depends(get_db)):
    """
    Weekly vs monthly adherence, streak and dose counts

    - **medication_id**: limit to one medication; account-wide when omitted
    """
    report_service = services.get_report_service()

    dashboard = await report_service.get_dashboard(medication_id, db=db)
    return DashboardResponse(**dashboard.to_dict())


@router.get("/medications", response_model=DashboardList)
async def get_medication_dashboards(db: Session = Depends(get_db)):
    """One dashboard per medication, lowest monthly adherence first"""
    report_service = services.get_report_service()

    dashboards = await report_service.get_all_medication_dashboards(db=db)
    return DashboardList(
        dashboards=[DashboardResponse(**d.to_dict()) for d in dashboards],
        total=len(dashboards)
    )


@router.get("/medications/{medication_id}", response_model=MedicationBreakdownResponse)
async def get_medication_breakdown(medication_id: int, db: Session = Depends(get_db)):
    """Dashboard, time-of-day and weekday stats for one medication"""
    report_service = services.get_report_service()

    breakdown = await report_service.get_medication_breakdown(medication_id, db=db)
    if breakdown is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Medication {medication_id} not found"
        )
    return breakdown
