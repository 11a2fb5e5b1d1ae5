"""
Foundation API Backend — Global Exception Filter
==================================================

What:  The single place where exceptions become HTTP error responses.
How:   Installed as the FastAPI exception handler for every exception family,
       and called by UnhandledExceptionMiddleware for everything else.
       Each exception is classified → mapped to an ErrorResponse → logged →
       reported to Sentry (5xx only) → returned as JSON.
Who:   Registered once by create_app(); route handlers never catch errors
       themselves.

Classification (first match wins):
    1. Request validation (FastAPI)    → 400 VALIDATION_ERROR + validation[]
    2. HTTPException / FoundationError → its status; explicit code, else the
                                         status table
    3. SQLAlchemy DBAPIError           → by SQLSTATE:
         23505 unique violation        → 409 DATABASE_CONFLICT_ERROR
         23503 foreign key violation   → 400 DATABASE_VALIDATION_ERROR
         23502 not-null violation      → 400 DATABASE_VALIDATION_ERROR
         anything else                 → 500 DATABASE_ERROR
    4. Anything else                   → 500 INTERNAL_SERVER_ERROR, including
                                         pydantic errors raised by server code

Security:
    5xx messages are fixed strings; the exception text, SQL and stack traces
    only go to the server log and Sentry. Headers and bodies attached to
    Sentry events pass through the redactors first.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.exceptions import ErrorCode, FoundationError
from app.filters.redact import Redactor, create_redactor
from app.schemas.error import ErrorDetails, ErrorResponse, ValidationErrorItem

logger = logging.getLogger(__name__)

# ── PostgreSQL SQLSTATE codes ─────────────────────────────────────────────
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
NOT_NULL_VIOLATION = "23502"

# (status, code, message) per SQLSTATE
_DATABASE_ERRORS: Dict[str, Tuple[int, ErrorCode, str]] = {
    UNIQUE_VIOLATION: (409, ErrorCode.DATABASE_CONFLICT_ERROR, "A record with this value already exists"),
    FOREIGN_KEY_VIOLATION: (400, ErrorCode.DATABASE_VALIDATION_ERROR, "Referenced record does not exist"),
    NOT_NULL_VIOLATION: (400, ErrorCode.DATABASE_VALIDATION_ERROR, "Required field is missing"),
}
_GENERIC_DATABASE_ERROR = (500, ErrorCode.DATABASE_ERROR, "Database error occurred")

# SQLite reports constraint failures only through the message text
_SQLITE_PATTERNS = [
    (re.compile(r"UNIQUE constraint failed: ([\w\"]+)\.(\w+)"), UNIQUE_VIOLATION),
    (re.compile(r"NOT NULL constraint failed: ([\w\"]+)\.(\w+)"), NOT_NULL_VIOLATION),
    (re.compile(r"FOREIGN KEY constraint failed"), FOREIGN_KEY_VIOLATION),
]

# Request locations FastAPI prefixes onto validation error paths
_LOCATIONS = frozenset({"body", "query", "path", "header", "cookie"})

SENSITIVE_HEADER_KEYS = ["authorization", "cookie", "set-cookie"]
SENSITIVE_HEADER_PLAIN_KEYS = ['["x-api-key"]', '["x-auth-token"]']
SENSITIVE_BODY_KEYS = [
    "password",
    "token",
    "secret",
    "apiKey",
    "api_key",
    "accessToken",
    "refreshToken",
    "idToken",
    "authorization",
]


def status_to_code(status: int) -> ErrorCode:
    if status == 401:
        return ErrorCode.UNAUTHORIZED
    if status == 403:
        return ErrorCode.FORBIDDEN
    if status == 404:
        return ErrorCode.NOT_FOUND
    if status >= 500:
        return ErrorCode.INTERNAL_SERVER_ERROR
    return ErrorCode.BAD_REQUEST


def _as_error_code(value: Any) -> Optional[ErrorCode]:
    try:
        return ErrorCode(value)
    except ValueError:
        return None


def _validation_items(errors: List[Dict[str, Any]]) -> List[ValidationErrorItem]:
    items = []
    for error in errors:
        loc = list(error.get("loc", ()))
        if loc and loc[0] in _LOCATIONS:
            loc = loc[1:]
        items.append(
            ValidationErrorItem(
                field=".".join(str(part) for part in loc),
                message=error.get("msg", ""),
                rule=error.get("type"),
            )
        )
    return items


def extract_database_error(exc: DBAPIError) -> Dict[str, Optional[str]]:
    """
    SQLSTATE code and constraint context of a driver error.

    asyncpg errors arrive wrapped: SQLAlchemy's adapter exposes `pgcode` /
    `sqlstate`, and the asyncpg exception (as __cause__) carries
    constraint_name, table_name, column_name and detail.
    """
    orig = exc.orig
    cause = getattr(orig, "__cause__", None)
    info: Dict[str, Optional[str]] = {
        "code": getattr(orig, "pgcode", None)
        or getattr(orig, "sqlstate", None)
        or getattr(cause, "sqlstate", None),
        "constraint": None,
        "table": None,
        "column": None,
        "detail": None,
    }
    for source in (cause, orig):
        if source is None:
            continue
        info["constraint"] = info["constraint"] or getattr(source, "constraint_name", None)
        info["table"] = info["table"] or getattr(source, "table_name", None)
        info["column"] = info["column"] or getattr(source, "column_name", None)
        info["detail"] = info["detail"] or getattr(source, "detail", None)

    if info["code"] is None:
        message = str(orig)
        for pattern, code in _SQLITE_PATTERNS:
            match = pattern.search(message)
            if match:
                info["code"] = code
                if match.groups():
                    info["table"] = match.group(1).strip('"')
                    info["column"] = match.group(2)
                break
    return info


class GlobalExceptionFilter:
    """
    Builds every error response. Holds the two redactors used for Sentry
    context; they are immutable, so one instance serves all requests.
    """

    def __init__(self) -> None:
        self.header_redactor: Redactor = create_redactor(
            SENSITIVE_HEADER_KEYS, depth=0, plain_keys=SENSITIVE_HEADER_PLAIN_KEYS
        )
        self.body_redactor: Redactor = create_redactor(SENSITIVE_BODY_KEYS, depth=3)

    def register(self, app: FastAPI) -> None:
        for exc_class in (
            RequestValidationError,
            StarletteHTTPException,
            FoundationError,
            DBAPIError,
            Exception,
        ):
            app.add_exception_handler(exc_class, self.catch)

    async def catch(self, request: Request, exc: Exception) -> JSONResponse:
        error = self.build_error_response(exc, request)
        self._log(exc, request, error)
        if error.status >= 500:
            self._capture_exception(exc, request)

        headers = getattr(exc, "headers", None) if isinstance(exc, StarletteHTTPException) else None
        return JSONResponse(status_code=error.status, content=error.to_body(), headers=headers)

    # ── Classification ────────────────────────────────────────────────────

    def build_error_response(self, exc: Exception, request: Request) -> ErrorResponse:
        validation: Optional[List[ValidationErrorItem]] = None
        details: Optional[ErrorDetails] = None

        if isinstance(exc, RequestValidationError):
            status, code, message = 400, ErrorCode.VALIDATION_ERROR, "Validation failed"
            validation = _validation_items(list(exc.errors()))
        elif isinstance(exc, StarletteHTTPException):
            status, code, message = self._from_http_exception(exc)
        elif isinstance(exc, FoundationError):
            status, code, message = exc.status_code, exc.code, exc.message
        elif isinstance(exc, DBAPIError):
            status, code, message, details = self._from_database_error(exc)
        else:
            status, code, message = 500, ErrorCode.INTERNAL_SERVER_ERROR, "Internal server error"

        return ErrorResponse(
            status=status,
            code=code,
            message=message,
            timestamp=datetime.now(timezone.utc),
            path=request.url.path,
            request_id=request.headers.get("x-request-id")
            or getattr(request.state, "request_id", None),
            validation=validation,
            details=details,
        )

    def _from_http_exception(self, exc: StarletteHTTPException) -> Tuple[int, ErrorCode, str]:
        status = exc.status_code
        explicit_code: Optional[ErrorCode] = None
        detail = exc.detail

        if isinstance(detail, dict):
            explicit_code = _as_error_code(detail.get("code"))
            detail = detail.get("message", detail.get("detail"))

        if isinstance(detail, (list, tuple)):
            message = ", ".join(str(item) for item in detail)
        elif detail:
            message = str(detail)
        else:
            message = "Internal server error" if status >= 500 else "Bad request"

        return status, explicit_code or status_to_code(status), message

    def _from_database_error(
        self, exc: DBAPIError
    ) -> Tuple[int, ErrorCode, str, Optional[ErrorDetails]]:
        info = extract_database_error(exc)
        status, code, message = _DATABASE_ERRORS.get(info["code"] or "", _GENERIC_DATABASE_ERROR)

        fields: Dict[str, str] = {}
        for key in ("column", "detail"):
            if info[key]:
                fields[key] = info[key]
        if not settings.is_production:
            for key in ("constraint", "table"):
                if info[key]:
                    fields[key] = info[key]

        return status, code, message, ErrorDetails(**fields) if fields else None

    # ── Logging / Reporting ───────────────────────────────────────────────

    def _log(self, exc: Exception, request: Request, error: ErrorResponse) -> None:
        extra = {
            "status": error.status,
            "code": error.code.value,
            "method": request.method,
            "path": error.path,
            "request_id": error.request_id,
        }
        if error.status >= 500:
            logger.error(
                "%s %s → %d %s: %s",
                request.method,
                error.path,
                error.status,
                error.code.value,
                exc,
                exc_info=exc,
                extra=extra,
            )
        else:
            logger.warning(
                "%s %s → %d %s: %s",
                request.method,
                error.path,
                error.status,
                error.code.value,
                error.message,
                extra=extra,
            )

    def _capture_exception(self, exc: Exception, request: Request) -> None:
        if not settings.sentry_enabled:
            return
        try:
            body = getattr(request.state, "body", None)
            context: Dict[str, Any] = {
                "method": request.method,
                "url": str(request.url),
                "query": dict(request.query_params),
                "headers": self.header_redactor(dict(request.headers)),
                "body": self.body_redactor(body) if isinstance(body, (dict, list)) else None,
            }
            with sentry_sdk.new_scope() as scope:
                scope.set_context("request", context)
                user = getattr(request.state, "user", None)
                if user is not None:
                    scope.set_user({"id": str(user.id), "email": getattr(user, "email", None)})
                scope.set_tag("path", request.url.path)
                scope.set_tag("method", request.method)
                scope.set_tag("url", str(request.url))
                sentry_sdk.capture_exception(exc)
        except Exception as report_error:
            logger.warning("Failed to report exception to Sentry: %s", report_error)


global_exception_filter = GlobalExceptionFilter()
