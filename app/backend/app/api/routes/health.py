"""Health check endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.db.dependencies import get_db_session

router = APIRouter()


@router.get("/health")
def health() -> dict[str, str]:
    """Simple liveness endpoint."""

    return {"status": "ok"}


@router.get("/health/db")
def health_db(db: Session = Depends(get_db_session)) -> dict[str, str]:
    """Readiness endpoint; fails if the database cannot answer a trivial query."""

    db.execute(text("SELECT 1"))
    return {"status": "ok", "database": "reachable"}
