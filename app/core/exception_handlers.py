"""Global exception handlers for consistent error responses.

Every failure leaves the API as ``{"error": {"code": ..., "message": ...}}``
with the status code chosen by error type. The request id travels in the
response header only, so two failures of the same kind render byte-identical
bodies.

Design:
- AppError subclasses → 400 / 401 / 409 / 429 / 500
- RequestValidationError (bad body, malformed JSON) → 400
- Unexpected Exception → generic 500 (safety net)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import (
    AppError,
    AuthenticationAppError,
    ConfigurationAppError,
    ConflictAppError,
    ErrorDetails,
    InternalAppError,
    RateLimitAppError,
    StoreAppError,
    ValidationAppError,
)
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)


_STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (ValidationAppError, 400),
    (AuthenticationAppError, 401),
    (ConflictAppError, 409),
    (RateLimitAppError, 429),
    (ConfigurationAppError, 500),
    (StoreAppError, 500),
    (InternalAppError, 500),
)


def status_for_error(exc: AppError) -> int:
    """Resolve the HTTP status code for an AppError instance.

    Unknown AppError subclasses are treated as client errors (400).
    """
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _error_body(code: str, message: str, details: dict | None = None) -> dict:
    content: dict = {"code": code, "message": message}
    if details:
        content["details"] = details
    return {"error": content}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Server-side failures (5xx) are logged at error level; client faults at
    warning level. The message on the exception is always client-safe, the
    underlying cause (if any) only reaches the logs.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error body.
    """
    status_code = status_for_error(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "cause": repr(exc.__cause__) if exc.__cause__ else None,
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.code, exc.message, dict(exc.details) if exc.details else None),
        headers=exc.headers,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Translate FastAPI body validation failures into ValidationAppError.

    Only the first problem is reported, as ``<field>: <reason>``, with the
    field also under ``details``. Input values are never echoed back (they
    may contain passwords).
    """
    errors = exc.errors()
    message = "Invalid request body"
    details: ErrorDetails | None = None
    if errors:
        first = errors[0]
        loc = [str(part) for part in first.get("loc", ()) if part != "body"]
        reason = first.get("msg", "invalid value")
        if loc:
            field = ".".join(loc)
            message = f"{field}: {reason}"
            details = {"field": field}
        else:
            message = reason

    error = ValidationAppError(code="validation_error", message=message, details=details)
    return await app_error_handler(request, error)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs the exception type and message while returning a generic body, so
    driver or library internals never reach the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=500,
        content=_error_body(
            "internal_server_error",
            "An unexpected error occurred. Please try again later.",
        ),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Example:
        >>> from fastapi import FastAPI
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
