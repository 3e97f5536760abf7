"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app import equipment, inspections, integrations, sessions
from app.dependencies import get_service, store_errors
from app.schemas import DashboardStats
from services.maintenance import MaintenanceService

router = APIRouter()


@router.get(
    "/dashboard/stats",
    response_model=DashboardStats,
    summary="Headline maintenance statistics.",
    tags=["dashboard"],
)
def dashboard_stats(service: MaintenanceService = Depends(get_service)) -> DashboardStats:
    with store_errors():
        return service.dashboard_stats()


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}


router.include_router(equipment.router)
router.include_router(inspections.router)
router.include_router(sessions.router)
router.include_router(integrations.router)
