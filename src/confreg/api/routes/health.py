"""Health check endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from ...config import Settings, get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict:
    """
    Health check endpoint.

    Returns service status and version.
    """
    from confreg import __version__

    return {
        "status": "healthy",
        "version": __version__,
        "service": "confreg",
    }


@router.get("/ready")
async def readiness_check(settings: Annotated[Settings, Depends(get_settings)]) -> dict:
    """
    Readiness check endpoint.

    Verifies that accepted receipts can be stored.
    """
    checks = {
        "api": True,
        "upload_dir": settings.upload_dir.is_dir(),
    }

    return {
        "ready": all(checks.values()),
        "checks": checks,
    }
