"""Domain exceptions and their HTTP mapping."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ArtViewError(Exception):
    """Base class for errors raised by the engagement core."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ArtViewError):
    """A required field is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(ArtViewError):
    """An artwork or engagement id does not resolve."""

    status_code = status.HTTP_404_NOT_FOUND


class PersistenceError(ArtViewError):
    """The storage layer failed; callers only ever see a generic message."""

    def __init__(self, message: str, public_message: str = "Internal server error"):
        super().__init__(message)
        self.public_message = public_message


async def artview_error_handler(request: Request, exc: ArtViewError) -> JSONResponse:
    if isinstance(exc, PersistenceError):
        logger.error(f"Persistence error on {request.method} {request.url.path}: {exc.message}", exc_info=exc)
        return JSONResponse(status_code=exc.status_code, content={"message": exc.public_message})
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": detail})


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        return JSONResponse(status_code=exc.status_code, content={"message": "Endpoint not found"})
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Server error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the JSON error responses on the application."""
    app.add_exception_handler(ArtViewError, artview_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
