"""Custom exceptions and handlers for consistent error responses.

Every failure leaves the API as:

    {"error": {"code": "MACHINE_CODE", "message": "Human-readable text"}}

Authentication failures (401) and authorization failures (403) are terminal
for the request.  Internal details (tracebacks, SQL, ids) are only included
when ``settings.debug`` is on.
"""

import logging
import traceback
from typing import Union

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from lostfound.config import settings

logger = logging.getLogger(__name__)


class LostFoundException(Exception):
    """Base exception for lost-and-found application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(self.message)


# ── Authentication ───────────────────────────────────────────

class NoTokenError(LostFoundException):
    def __init__(self, message: str = "No authentication token provided"):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED, "NO_TOKEN")


class InvalidTokenError(LostFoundException):
    """Malformed token, bad signature, wrong algorithm or missing claims."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED, "INVALID_TOKEN")


class TokenExpiredError(LostFoundException):
    def __init__(self, message: str = "Token has expired"):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED, "TOKEN_EXPIRED")


class AccountNotFoundError(LostFoundException):
    """The token refers to an account that no longer exists."""

    def __init__(self, account_id: str | None = None):
        self.account_id = account_id
        super().__init__("User not found", status.HTTP_401_UNAUTHORIZED, "USER_NOT_FOUND")


class StoreFaultError(LostFoundException):
    """Persistence failed while resolving identity; the request fails closed."""

    def __init__(self, message: str = "Server error during authentication"):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, "AUTH_ERROR")


# ── Authorization ────────────────────────────────────────────

class PermissionDeniedError(LostFoundException):
    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(message, status.HTTP_403_FORBIDDEN, "PERMISSION_DENIED")


# ── Catalog / domain ─────────────────────────────────────────

class DuplicatePermissionError(LostFoundException):
    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Permission already exists: {name}",
            status.HTTP_409_CONFLICT,
            "DUPLICATE_PERMISSION",
        )


class ResourceNotFoundError(LostFoundException):
    def __init__(self, resource: str, identifier: str):
        super().__init__(
            message=f"{resource} not found: {identifier}",
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="RESOURCE_NOT_FOUND",
        )


class BusinessLogicError(LostFoundException):
    """Request is well-formed but violates a domain rule."""

    def __init__(self, message: str, error_code: str = "BUSINESS_LOGIC_ERROR"):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code=error_code,
        )


# ── Response helpers ─────────────────────────────────────────

def create_error_response(
    status_code: int,
    message: str,
    error_code: str = "ERROR",
    details: dict | None = None,
    headers: dict | None = None,
) -> JSONResponse:
    content = {"error": {"code": error_code, "message": message}}
    if details:
        content["error"]["details"] = details
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer", **(headers or {})}
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _context(request: Request) -> dict:
    return {"path": request.url.path, "method": request.method}


# ── Handlers ─────────────────────────────────────────────────

async def lostfound_exception_handler(request: Request, exc: LostFoundException) -> JSONResponse:
    """Auth failures and domain errors raised by the app itself."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "%s - %s", exc.error_code, exc.message,
        extra={"error_code": exc.error_code, **_context(request)},
    )
    return create_error_response(exc.status_code, exc.message, exc.error_code)


async def http_exception_handler(
    request: Request,
    exc: Union[HTTPException, StarletteHTTPException],
) -> JSONResponse:
    return create_error_response(
        exc.status_code,
        str(exc.detail),
        f"HTTP_{exc.status_code}",
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning("Validation error on %s", request.url.path, extra=_context(request))
    return create_error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error",
        "VALIDATION_ERROR",
        details={"errors": errors},
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Store errors that escaped the route.

    Constraint violations (e.g. two registrations racing on one employee
    number) are conflicts; anything else means the store is unavailable.
    """
    logger.error("Database error on %s: %s", request.url.path, exc, extra=_context(request))
    if isinstance(exc, IntegrityError):
        return create_error_response(
            status.HTTP_409_CONFLICT,
            "A record with this value already exists",
            "DUPLICATE_RECORD",
        )
    return create_error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Database temporarily unavailable. Please try again.",
        "DATABASE_UNAVAILABLE",
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything unhandled: generic 500, traceback only with ``settings.debug``."""
    logger.error(
        "Unhandled exception on %s: %s", request.url.path, exc,
        extra=_context(request), exc_info=True,
    )
    details = {"traceback": traceback.format_exc()} if settings.debug else None
    return create_error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred. Please try again later.",
        "INTERNAL_SERVER_ERROR",
        details=details,
    )


def register_exception_handlers(app):
    """Register all custom exception handlers with FastAPI app."""
    app.add_exception_handler(LostFoundException, lostfound_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
