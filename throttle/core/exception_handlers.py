"""Global exception handlers for consistent error responses.

Design:
- StoreAppError -> 503 (counter store unavailable)
- ConfigurationAppError -> 500 (server misconfiguration)
- Other AppError -> 400
- Unexpected Exception -> generic 500 (safety net)
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from throttle.core.errors import AppError, ConfigurationAppError, StoreAppError

logger = logging.getLogger(__name__)


def status_code_for(exc: AppError) -> int:
    """Map a domain error to an HTTP status code."""
    if isinstance(exc, StoreAppError):
        return 503
    if isinstance(exc, ConfigurationAppError):
        return 500
    return 400


def build_error_response(exc: AppError) -> JSONResponse:
    """Render an AppError with the shared JSON error envelope.

    Args:
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with {"error": {code, message, details?}}.
    """
    error_content = {
        "code": exc.code,
        "message": exc.message,
    }

    # Include details only if present (optional structured context)
    if exc.details:
        error_content["details"] = exc.details

    return JSONResponse(
        status_code=status_code_for(exc),
        content={"error": error_content},
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors raised inside routes."""
    response = build_error_response(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": response.status_code,
            "has_details": bool(exc.details),
        },
    )
    return response


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning generic message.
    Prevents information leakage (no stack traces to client).
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Order matters: specific handlers registered before general fallback.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
