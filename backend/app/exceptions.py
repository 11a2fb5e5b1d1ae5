"""
Foundation API Backend — Custom Exception Hierarchy
=====================================================

What:  Application-specific exceptions and the error-code taxonomy.
How:   Each exception class carries a message, an optional context dict, the
       HTTP status it maps to and an ErrorCode. The global exception filter
       (app.filters.global_exception) turns them into ErrorResponse bodies.
Who:   Raised by services, admin controllers and dependencies.
When:  During request processing, at the point the failure is detected.

Exception Hierarchy:
    FoundationError (base)             → 500 INTERNAL_SERVER_ERROR
    ├── BadRequestError                → 400 BAD_REQUEST
    │   └── ValidationError            → 400 VALIDATION_ERROR
    ├── UnauthorizedError              → 401 UNAUTHORIZED
    ├── ForbiddenError                 → 403 FORBIDDEN
    └── NotFoundError                  → 404 NOT_FOUND

    Route handlers never catch these: they propagate to the filter, which
    is the only place errors become HTTP responses.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Application-level error codes for client-side handling and i18n."""

    # 400
    VALIDATION_ERROR = "VALIDATION_ERROR"
    DATABASE_VALIDATION_ERROR = "DATABASE_VALIDATION_ERROR"  # FK / NOT NULL
    BAD_REQUEST = "BAD_REQUEST"
    # 409
    DATABASE_CONFLICT_ERROR = "DATABASE_CONFLICT_ERROR"  # unique violation
    # 401
    UNAUTHORIZED = "UNAUTHORIZED"
    # 403
    FORBIDDEN = "FORBIDDEN"
    # 404
    NOT_FOUND = "NOT_FOUND"
    # 500
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class FoundationError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:      User-facing error description (returned in the response)
        context:      Additional debug info (logged, NOT returned to client)
        status_code:  HTTP status the filter responds with
        code:         ErrorCode reported in the response body
    """

    status_code: int = 500
    code: ErrorCode = ErrorCode.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class BadRequestError(FoundationError):
    """Malformed request the client can fix (bad JSON, unsupported parameter)."""

    status_code = 400
    code = ErrorCode.BAD_REQUEST

    def __init__(
        self,
        message: str = "Bad request",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ValidationError(BadRequestError):
    """
    Raised when client input fails a business validation rule.

    Example:
        raise ValidationError("Invalid sort field: nope.", field="sort")
    """

    code = ErrorCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UnauthorizedError(FoundationError):
    """No valid session accompanies a request to a protected route."""

    status_code = 401
    code = ErrorCode.UNAUTHORIZED

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(FoundationError):
    status_code = 403
    code = ErrorCode.FORBIDDEN

    def __init__(
        self,
        message: str = "Forbidden",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(FoundationError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; repositories and services turn
    that None into this exception.
    """

    status_code = 404
    code = ErrorCode.NOT_FOUND

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
        message: Optional[str] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id is not None:
                message = f"{resource} with ID {resource_id} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)
