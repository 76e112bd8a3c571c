"""Export endpoint for period reports."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.db.dependencies import get_db_session
from app.services.statistics_service import StatisticsService

router = APIRouter(prefix="/exports", tags=["exports"])


@router.get("/period-report")
def export_period_report(
    start_date: date = Query(...),
    end_date: date = Query(...),
    format: str = Query(default="xlsx"),
    db: Session = Depends(get_db_session),
) -> Response:
    exported = StatisticsService(db).export_period_report(start_date, end_date, format)
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
    )
