"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorCode:
    """Stable, machine-readable error codes returned in the ``error`` field."""

    INVALID_QUERY_PARAMETERS = "INVALID_QUERY_PARAMETERS"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_PASSWORD = "INVALID_PASSWORD"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_AUTHENTICATION_TOKEN = "INVALID_AUTHENTICATION_TOKEN"
    NOT_FOUND = "NOT_FOUND"
    ROUTE_NOT_FOUND = "ROUTE_NOT_FOUND"
    DUPLICATE_KEY = "DUPLICATE_KEY"
    EMAIL_ALREADY_TAKEN = "EMAIL_ALREADY_TAKEN"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    hint: str
    field: str
    value: Any
    resource: str
    record_id: str
    retry_after: int
    validation_errors: list[dict[str, Any]]
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    status_code = 400
    description = "Bad request"

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when client input fails validation."""

    status_code = 400
    description = "Invalid request"


class InvalidQueryAppError(ValidationAppError):
    """Raised when pagination/search/sort query parameters are malformed."""

    description = "Invalid query parameters"

    def __init__(
        self,
        message: str = "Invalid query parameters",
        details: ErrorDetails | None = None,
    ) -> None:
        super().__init__(ErrorCode.INVALID_QUERY_PARAMETERS, message, details)


class AuthenticationAppError(AppError):
    """Raised when a request carries no valid session token."""

    status_code = 401
    description = "Authentication required"


class ForbiddenAppError(AppError):
    """Raised for rejected credentials or password confirmation mismatches."""

    status_code = 403
    description = "Forbidden"


class RateLimitedAppError(ForbiddenAppError):
    """Raised when a client exceeds the login attempt ceiling."""

    description = "Too many requests"

    def __init__(
        self,
        message: str = "Too many failed login attempts.",
        details: ErrorDetails | None = None,
    ) -> None:
        super().__init__(ErrorCode.RATE_LIMITED, message, details)


class NotFoundAppError(AppError):
    """Raised when a referenced record does not exist."""

    status_code = 404
    description = "Not found"

    def __init__(self, message: str, details: ErrorDetails | None = None) -> None:
        super().__init__(ErrorCode.NOT_FOUND, message, details)


class DuplicateKeyAppError(AppError):
    """Raised when a uniqueness constraint (e.g. email) is violated."""

    status_code = 409
    description = "Conflict"


class InternalAppError(AppError):
    """Raised when the record store or another dependency fails unexpectedly."""

    status_code = 500
    description = "Internal server error"

    def __init__(
        self,
        message: str = "An internal error occurred",
        details: ErrorDetails | None = None,
    ) -> None:
        super().__init__(ErrorCode.INTERNAL_ERROR, message, details)
