"""Global exception handlers for consistent error responses.

Every error leaves the API in one JSON shape::

    {
        "statusCode": 400,
        "error": "INVALID_QUERY_PARAMETERS",
        "description": "Invalid query parameters",
        "message": "Invalid query parameters",
        "validation_errors": [...],   # only for validation failures
        "request_id": "..."
    }

Mapping:
- AppError subclasses → their ``status_code`` (400, 401, 403, 404, 409, 500)
- Request body/query validation (pydantic) → 400 VALIDATION_ERROR
- Unknown routes → 404 ROUTE_NOT_FOUND
- Unexpected Exception → 500 INTERNAL_ERROR (no internals leaked)
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.errors import AppError, ErrorCode, RateLimitedAppError
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)


def error_body(
    *,
    status_code: int,
    code: str,
    description: str,
    message: str,
    validation_errors: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "statusCode": status_code,
        "error": code,
        "description": description,
        "message": message,
    }
    if validation_errors:
        body["validation_errors"] = validation_errors
    body["request_id"] = get_request_id()
    return body


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the error's status code and the standard body.
    """
    details = exc.details or {}
    status_code = exc.status_code

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "request_path": request.url.path,
            "request_method": request.method,
            "has_details": bool(details),
        },
    )

    headers: dict[str, str] | None = None
    if isinstance(exc, RateLimitedAppError) and settings.app.login_rate_limit_include_headers:
        context = details.get("context") or {}
        headers = {"Retry-After": str(details.get("retry_after", 0))}
        if "limit" in context:
            headers["X-RateLimit-Limit"] = str(context["limit"])
            headers["X-RateLimit-Remaining"] = "0"
        if "reset_at" in context:
            headers["X-RateLimit-Reset"] = str(context["reset_at"])

    return JSONResponse(
        status_code=status_code,
        content=error_body(
            status_code=status_code,
            code=exc.code,
            description=exc.description,
            message=exc.message,
            validation_errors=details.get("validation_errors"),
        ),
        headers=headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report pydantic validation failures field by field."""
    validation_errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]
    logger.warning(
        "request_validation_failed",
        extra={
            "request_path": request.url.path,
            "fields": [e["field"] for e in validation_errors],
        },
    )
    return JSONResponse(
        status_code=400,
        content=error_body(
            status_code=400,
            code=ErrorCode.VALIDATION_ERROR,
            description="Invalid request",
            message="Request validation failed",
            validation_errors=validation_errors,
        ),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap framework HTTP errors (unknown route, wrong method) in the standard body."""
    if exc.status_code == 404:
        code, message = ErrorCode.ROUTE_NOT_FOUND, "Route not found"
    else:
        code = HTTPStatus(exc.status_code).name
        message = str(exc.detail)

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(
            status_code=exc.status_code,
            code=code,
            description=HTTPStatus(exc.status_code).phrase,
            message=message,
        ),
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors; logs detail, returns a generic body."""
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )
    return JSONResponse(
        status_code=500,
        content=error_body(
            status_code=500,
            code=ErrorCode.INTERNAL_ERROR,
            description="Internal server error",
            message="An unexpected error occurred. Please try again later.",
        ),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
