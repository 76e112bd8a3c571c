"""Top-level API router."""

from fastapi import APIRouter

from app.api.routes.exports import router as exports_router
from app.api.routes.health import router as health_router
from app.api.routes.statistics import router as statistics_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(statistics_router)
api_router.include_router(exports_router)
