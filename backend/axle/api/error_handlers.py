"""Error Handlers — global exception handlers for the Axle API.

Invariants:
    - AxleError -> structured JSON with error code, message, severity
    - RequestValidationError -> 400 with field-level error details
    - Exception (catch-all) -> never leaks internal details

Design Decisions:
    - Three-layer handler: domain (AxleError), validation (Pydantic), catch-all (Exception)
    - Conflicts logged at warning: a 409 is a client race, not a server fault
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from axle.core.errors import AxleError, ErrorSeverity

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_axle_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_axle_error_handler(app: FastAPI) -> None:

    @app.exception_handler(AxleError)
    async def axle_error_handler(request: Request, exc: AxleError):
        """Handle all Axle domain/infrastructure errors."""
        level = logging.WARNING if exc.http_status < 500 else logging.ERROR
        logger.log(
            level,
            f"AxleError: {exc.message}",
            extra={"error_code": exc.code, "path": request.url.path},
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
