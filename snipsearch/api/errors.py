"""
Structured error response schema and exception handlers.
Every error body has the same shape: {"error": <code>, "detail": <optional>}.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from snipsearch.api.auth import InvalidIdentity
from snipsearch.services.errors import EmbeddingUnavailable, InvalidTeamAssignment, StoreUnavailable

logger = logging.getLogger(__name__)


class ErrorBody(BaseModel):
    """Consistent error shape for all endpoints."""

    error: str
    detail: str | None = None


def error_response(status_code: int, error: str, detail: str | None = None) -> JSONResponse:
    """Return JSONResponse with ErrorBody shape."""
    body = ErrorBody(error=error, detail=detail)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
    )


def not_found() -> JSONResponse:
    """Missing and not-visible look the same to the caller."""
    return error_response(status.HTTP_404_NOT_FOUND, "not_found", detail="Snippet not found")


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors (422) with consistent body."""
    detail = str(exc.errors()) if getattr(exc, "errors", None) else str(exc)
    return error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        error="validation_error",
        detail=detail,
    )


async def embedding_unavailable_handler(
    request: Request, exc: EmbeddingUnavailable
) -> JSONResponse:
    """Search cannot run without a query embedding; distinct from an empty result."""
    logger.warning("Search unavailable: %s", exc)
    return error_response(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        error="search_unavailable",
        detail="Search functionality is currently unavailable. Please try again later.",
    )


async def store_unavailable_handler(request: Request, exc: StoreUnavailable) -> JSONResponse:
    """No database configured (503)."""
    return error_response(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        error="store_unavailable",
    )


async def invalid_team_handler(request: Request, exc: InvalidTeamAssignment) -> JSONResponse:
    """Team visibility without a valid team for the owner (400)."""
    return error_response(
        status_code=status.HTTP_400_BAD_REQUEST,
        error="invalid_team",
        detail=str(exc),
    )


async def invalid_identity_handler(request: Request, exc: InvalidIdentity) -> JSONResponse:
    """Malformed identity header (401)."""
    return error_response(
        status_code=status.HTTP_401_UNAUTHORIZED,
        error="unauthorized",
        detail=str(exc),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log and return 500; do not expose internal details to caller."""
    logger.exception("Unhandled exception: %s", exc)
    return error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        error="internal_error",
        detail=None,
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register exception handlers on the FastAPI app."""
    app.add_exception_handler(
        RequestValidationError,
        validation_exception_handler,
    )
    app.add_exception_handler(EmbeddingUnavailable, embedding_unavailable_handler)
    app.add_exception_handler(StoreUnavailable, store_unavailable_handler)
    app.add_exception_handler(InvalidTeamAssignment, invalid_team_handler)
    app.add_exception_handler(InvalidIdentity, invalid_identity_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
