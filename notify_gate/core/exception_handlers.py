"""Global exception handlers for consistent error responses.

Design:
- AppError subclasses -> mapped HTTP status (400, 429, 502)
- Unexpected Exception -> generic 500 (safety net)
- All responses include request_id for tracing
"""

import logging
import math

from fastapi import Request
from fastapi.responses import JSONResponse

from notify_gate.core.config import settings
from notify_gate.core.errors import (
    AppError,
    DeliveryAppError,
    QuotaExceededError,
)
from notify_gate.core.logging import get_request_id

logger = logging.getLogger(__name__)


def _status_for(exc: AppError) -> int:
    if isinstance(exc, QuotaExceededError):
        return 429
    if isinstance(exc, DeliveryAppError):
        return 502
    return 400


def _rate_limit_headers(exc: QuotaExceededError) -> dict[str, str]:
    """Build Retry-After / X-RateLimit-* headers for a quota rejection."""
    if not settings.gate.include_headers:
        return {}

    details = exc.details or {}
    headers = {"X-RateLimit-Remaining": "0"}
    # None means waiting will not help (zero-quota policy): no Retry-After.
    retry_after = details.get("retry_after")
    if retry_after is not None:
        headers["Retry-After"] = str(max(0, int(math.ceil(retry_after))))
    if "limit" in details:
        headers["X-RateLimit-Limit"] = str(details["limit"])
    return headers


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render domain errors as ``{"error": {...}}`` with the mapped status.

    - ValidationAppError -> 400 Bad Request
    - QuotaExceededError -> 429 Too Many Requests (+ rate limit headers)
    - DeliveryAppError -> 502 Bad Gateway

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = _status_for(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_id": get_request_id(),
        },
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }
    if exc.details:
        error_content["details"] = exc.details

    headers = _rate_limit_headers(exc) if isinstance(exc, QuotaExceededError) else None

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
        headers=headers or None,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the failure and returns a generic message; no stack traces or
    exception text reach the client.
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
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Register the handlers on a FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
