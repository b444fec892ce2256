"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api.middleware import setup_error_handlers
from .api.routes import admin_router, health_router, registrations_router
from .config import get_settings
from .core.registrations import get_registration_service

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log the effective configuration and prepare receipt storage."""
    settings = get_settings()

    logger.info(f"Conference registration API v{__version__} starting up...")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(
        f"Expected payment: {settings.expected_amount} {settings.expected_currency} "
        f"to INN {settings.recipient_tax_id}"
    )
    if not settings.admin_token:
        logger.warning("ADMIN_TOKEN is not set, admin API is disabled")

    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Receipts stored in: {settings.upload_dir}")

    yield

    logger.info("Conference registration API shutting down...")
    get_registration_service().shutdown()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Conference Registration API",
        description=(
            "Conference registration with payment receipt verification. "
            "Uploaded PDF receipts are checked for the donation amount, "
            "recipient, INN and bank before a registration is completed."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Setup error handlers
    setup_error_handlers(app, debug=settings.debug)

    # Include routers
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(registrations_router, prefix="/api/v1")
    app.include_router(admin_router, prefix="/api/v1")

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "confreg.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
