"""
Foundation API Backend — Error Response Schemas
=================================================

What:  The one JSON shape every failed request returns.
Who:   Built by the global exception filter; referenced in route `responses=`
       so the shape appears in the OpenAPI document.

Hierarchy:
    1. status      HTTP status code (always equals the response status)
    2. code        application-level ErrorCode for client handling and i18n
    3. message     human-readable description
    4. details     database context (constraint, table, column, detail)
    5. validation  field-level errors for forms

Example:
    {
        "status": 409,
        "code": "DATABASE_CONFLICT_ERROR",
        "message": "A record with this value already exists",
        "timestamp": "2024-01-05T12:00:00+00:00",
        "path": "/admin/user",
        "requestId": "a1b2c3d4",
        "details": {"column": "email"}
    }
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.exceptions import ErrorCode


class ValidationErrorItem(BaseModel):
    """Field-level validation error."""

    field: str = Field(description='Field path (e.g. "email", "user.address.city")')
    message: str = Field(description="Validation error message")
    rule: Optional[str] = Field(
        default=None,
        description='Validation rule that failed (e.g. "missing", "string_too_short")',
    )


class ErrorDetails(BaseModel):
    """Database-specific context; only attached to database errors."""

    model_config = ConfigDict(extra="allow")

    constraint: Optional[str] = Field(default=None, description='e.g. "user_email_key"')
    table: Optional[str] = Field(default=None)
    column: Optional[str] = Field(default=None)
    detail: Optional[str] = Field(
        default=None,
        description='Driver detail, e.g. "Key (email)=(a@b.c) already exists."',
    )


class ErrorResponse(BaseModel):
    """Standardized error response for every endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    status: int = Field(description="HTTP status code", examples=[400])
    code: ErrorCode = Field(description="Application error code")
    message: str = Field(description="Human-readable error message (English)")
    timestamp: datetime = Field(description="ISO 8601 timestamp")
    path: str = Field(description="Request path", examples=["/products"])
    request_id: Optional[str] = Field(
        default=None, alias="requestId", description="Request ID for tracing"
    )
    validation: Optional[List[ValidationErrorItem]] = Field(
        default=None, description="Field-level validation errors"
    )
    details: Optional[ErrorDetails] = Field(
        default=None, description="Additional error details"
    )

    def to_body(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase aliases and absent fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
