"""Global exception handlers: the single place errors become HTTP responses.

Mapping:
- IdentityMissingAppError   -> 400 {"error": "Token missing"}
- RateLimitAppError         -> 429 {"error": "Rate limit exceeded"}
- ValidationAppError        -> 422 {"status": 422, "message": [field errors]}
- RateLimitInternalAppError -> 500 {"error": "Internal server error"}
- MailAppError              -> its own status {"status", "message"}
- any other AppError        -> 500 {"status": 500, "message"}
- unexpected Exception      -> generic 500 (safety net, no details leaked)

Headers attached to an AppError (X-RateLimit-*) are forwarded as-is.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.errors import (
    AppError,
    IdentityMissingAppError,
    MailAppError,
    RateLimitAppError,
    RateLimitInternalAppError,
    ValidationAppError,
)
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Rate limit exceeded"
INTERNAL_ERROR_MESSAGE = "Internal server error"


def _status_and_content(exc: AppError) -> tuple[int, dict[str, Any]]:
    if isinstance(exc, IdentityMissingAppError):
        return 400, {"error": exc.message}
    if isinstance(exc, RateLimitAppError):
        return 429, {"error": RATE_LIMIT_MESSAGE}
    if isinstance(exc, RateLimitInternalAppError):
        return 500, {"error": INTERNAL_ERROR_MESSAGE}
    if isinstance(exc, ValidationAppError):
        return 422, {"status": 422, "message": exc.errors or [exc.message]}
    if isinstance(exc, MailAppError):
        status_code = exc.http_status
        if status_code == 429:
            return 429, {"status": 429, "message": RATE_LIMIT_MESSAGE}
        return status_code, {"status": status_code, "message": exc.message}
    return 500, {"status": 500, "message": exc.message or INTERNAL_ERROR_MESSAGE}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the mapped status code, body and headers.
    """
    status_code, content = _status_and_content(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=exc.headers or None,
    )


def fault_response(exc: Exception, headers: dict[str, str] | None = None) -> JSONResponse:
    """Map an uncaught fault from a route body to a ``{status, message}`` response.

    The fault's own ``status`` / ``status_code`` attribute is honoured when
    it is an error status; a fault tagged 429 is reported as a rate limit.

    Args:
        exc: Exception raised while handling the request.
        headers: Optional headers to attach (e.g. X-RateLimit-*).

    Returns:
        JSONResponse describing the fault.
    """
    raw_status = getattr(exc, "status", None) or getattr(exc, "status_code", None)
    status_code = raw_status if isinstance(raw_status, int) and 400 <= raw_status <= 599 else 500

    if status_code == 429:
        content: dict[str, Any] = {"status": 429, "message": RATE_LIMIT_MESSAGE}
    else:
        message = str(getattr(exc, "detail", None) or exc) or INTERNAL_ERROR_MESSAGE
        content = {"status": status_code, "message": message}

    logger.error(
        "route_fault",
        extra={
            "error_type": type(exc).__name__,
            "status_code": status_code,
            "request_id": get_request_id(),
        },
        exc_info=status_code >= 500,
    )
    return JSONResponse(status_code=status_code, content=content, headers=headers or None)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs the failure and returns a generic message: no stack traces or
    exception text reach the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=500,
        content={"status": 500, "message": INTERNAL_ERROR_MESSAGE},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
