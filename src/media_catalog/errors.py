"""
Error types raised by the catalog layers and the handlers that render them.

Every error body has the shape {"message": "<text>"}.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Base error carrying the HTTP status code and the client-facing message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequestError(CatalogError):
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(CatalogError):
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(CatalogError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(CatalogError):
    status_code = status.HTTP_409_CONFLICT


class PayloadTooLargeError(CatalogError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE


class PersistenceError(CatalogError):
    """Validation or database failure reported by the persistence layer."""


class ServiceUnavailableError(CatalogError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


# PUBLIC_INTERFACE
def error_message(exc: object) -> str:
    """Return "Error: <text>" for an exception (or text), "Unexpected error" when there is no text."""
    text = str(exc).strip()
    return f"Error: {text}" if text else "Unexpected error"


_REQUEST_PARTS = ("body", "path", "query", "header", "cookie")


def _describe_validation_errors(errors: List[Dict[str, Any]]) -> str:
    """One "<field>: <reason>" line per rejected request value."""
    problems: List[str] = []
    for err in errors:
        field = ".".join(str(part) for part in err.get("loc", ()) if part not in _REQUEST_PARTS)
        reason = str(err.get("msg", "Invalid value"))
        problems.append(f"{field}: {reason}" if field else reason)
    return ",\n".join(problems)


# PUBLIC_INTERFACE
def register_exception_handlers(app: FastAPI) -> None:
    """Render CatalogError subclasses, request validation failures and unexpected exceptions as JSON."""

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info(
                "%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message
            )
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Malformed ids and typed fields fail like a rejected write: 500 with "Error: <text>".
        message = error_message(_describe_validation_errors(list(exc.errors())))
        logger.info("%s %s rejected: %s", request.method, request.url.path, message)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": message},
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": error_message(exc)},
        )
