"""Statistics, dashboard and per-entity report endpoints."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db.dependencies import get_db_session
from app.services.statistics_service import StatisticsService

router = APIRouter(prefix="/statistics", tags=["statistics"])


def _service(db: Session) -> StatisticsService:
    return StatisticsService(db)


@router.get("/public", response_model=None)
def get_public_statistics(db: Session = Depends(get_db_session)) -> dict[str, object]:
    """Aggregates safe to show on the public landing page."""

    return _service(db).public_statistics()


@router.get("/general", response_model=None)
def get_general_statistics(db: Session = Depends(get_db_session)) -> dict[str, object]:
    return _service(db).general_statistics()


@router.get("/financial", response_model=None)
def get_financial_statistics(db: Session = Depends(get_db_session)) -> dict[str, object]:
    return _service(db).financial_statistics()


@router.get("/period", response_model=None)
def get_period_statistics(
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _service(db).period_statistics(start_date, end_date)


@router.get("/dashboard", response_model=None)
def get_global_dashboard(db: Session = Depends(get_db_session)) -> dict[str, object]:
    return _service(db).global_dashboard()


@router.get("/activity", response_model=None)
def get_activity_report(db: Session = Depends(get_db_session)) -> dict[str, object]:
    return _service(db).activity_report()


@router.get("/monthly-report", response_model=None)
def get_monthly_report(db: Session = Depends(get_db_session)) -> dict[str, object]:
    return _service(db).monthly_report()


@router.get("/trends", response_model=None)
def get_monthly_trends(db: Session = Depends(get_db_session)) -> dict[str, object]:
    return _service(db).monthly_trends()


@router.get("/report", response_model=None)
def get_period_report(
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _service(db).period_report(start_date, end_date)


@router.get("/associations/{association_id}", response_model=None)
def get_association_report(
    association_id: UUID,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _service(db).association_report(association_id, start_date=start_date, end_date=end_date)


@router.get("/donors/{donor_id}", response_model=None)
def get_donor_report(
    donor_id: UUID,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _service(db).donor_report(donor_id, start_date=start_date, end_date=end_date)


@router.get("/projects/{project_id}", response_model=None)
def get_project_report(
    project_id: UUID,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _service(db).project_report(project_id, start_date=start_date, end_date=end_date)
