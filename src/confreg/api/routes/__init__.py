"""API routes."""

from .admin import router as admin_router
from .health import router as health_router
from .registrations import router as registrations_router

__all__ = ["admin_router", "health_router", "registrations_router"]
