"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return consistent JSON responses with proper
HTTP status codes and traceability.

Design:
- AppError subclasses → the status code declared on the class
- RequestValidationError → 400 validation_failed with per-field details
- HTTPException → same envelope, headers preserved (e.g. 429 Retry-After)
- Unexpected Exception → generic 500 (safety net)
- All responses include request_id for distributed tracing
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from freshpick.core.errors import AppError
from freshpick.core.logging import get_request_id

logger = logging.getLogger(__name__)

_HTTP_STATUS_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    429: "rate_limit_exceeded",
}


def _error_response(
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    error_content: dict[str, Any] = {
        "code": code,
        "message": message,
        "request_id": get_request_id(),
    }
    # Include details only if present (optional structured context)
    if details:
        error_content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"success": False, "error": error_content}),
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    The HTTP status comes from ``exc.status_code`` (400 validation, 401
    authentication, 403 authorization, 404 not found, 409 conflict, 429 rate
    limited, 502 LLM, 503 store).

    All responses include:
    - error.code: Machine-readable error code
    - error.message: Human-readable message
    - error.request_id: For distributed tracing
    - error.details: Optional structured context
    """
    status_code = exc.status_code
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return _error_response(status_code, exc.code, exc.message, exc.details)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Map FastAPI/Pydantic request validation errors to a 400 envelope."""
    fields = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "Invalid value"),
            "type": error.get("type"),
        }
        for error in exc.errors()
    ]
    logger.info(
        "request_validation_failed",
        extra={
            "request_path": request.url.path,
            "request_method": request.method,
            "error_count": len(fields),
        },
    )
    return _error_response(400, "validation_failed", "Request validation failed", {"fields": fields})


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Wrap HTTPException raised by dependencies in the standard envelope."""
    code = _HTTP_STATUS_CODES.get(exc.status_code, "http_error")
    message = exc.detail if isinstance(exc.detail, str) else code.replace("_", " ").capitalize()
    details = None if isinstance(exc.detail, str) else exc.detail
    headers = getattr(exc, "headers", None)
    if exc.status_code == 429 and headers and "Retry-After" in headers:
        details = {"retry_after": int(headers["Retry-After"])}
    return _error_response(exc.status_code, code, message, details, headers=headers)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs the error type for debugging while returning a generic message, so no
    stack traces or internal messages reach the client.
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
        exc_info=exc,
    )

    return _error_response(
        500,
        "internal_server_error",
        "An unexpected error occurred. Please try again later.",
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with FastAPI app.

    Example:
        >>> from fastapi import FastAPI
        >>> from freshpick.core.exception_handlers import setup_exception_handlers
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
