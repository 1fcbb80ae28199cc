"""Domain error kinds and their HTTP mapping."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class GuesthouseError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(GuesthouseError):
    """Malformed or missing input."""


class NotFoundError(GuesthouseError):
    """Room or booking absent or inactive."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str) -> None:
        super().__init__(f"{resource.capitalize()} not found")
        self.resource = resource


class ConflictError(GuesthouseError):
    """Requested dates overlap an active booking."""

    status_code = status.HTTP_409_CONFLICT


class ForbiddenError(GuesthouseError):
    """Ownership or authorization failure."""

    status_code = status.HTTP_403_FORBIDDEN


def guesthouse_error_handler(_: Request, exc: GuesthouseError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def apply_error_handlers(app: FastAPI) -> None:
    """Map domain errors to status codes and log anything unexpected."""

    app.add_exception_handler(GuesthouseError, guesthouse_error_handler)
    app.add_exception_handler(Exception, internal_error_handler)
