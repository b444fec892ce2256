"""Exception handlers for the FastAPI app."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ...core.registrations import RegistrationAlreadyCompletedError, RegistrationNotFoundError

logger = logging.getLogger(__name__)


def setup_error_handlers(app: FastAPI, debug: bool = False) -> None:
    """
    Setup exception handlers for the FastAPI app.

    Receipt verification failures never reach these handlers: they are
    returned as values and mapped to responses by the routes.
    """

    @app.exception_handler(RegistrationNotFoundError)
    async def not_found_handler(request: Request, exc: RegistrationNotFoundError) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={"error": "Not found", "detail": str(exc)},
        )

    @app.exception_handler(RegistrationAlreadyCompletedError)
    async def already_completed_handler(
        request: Request,
        exc: RegistrationAlreadyCompletedError,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={"error": "Conflict", "detail": str(exc)},
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"error": "Validation error", "detail": str(exc)},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error processing {request.method} {request.url.path}")

        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc) if debug else "An unexpected error occurred",
            },
        )
