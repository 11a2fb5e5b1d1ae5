"""
Foundation API Backend — Unhandled Exception Middleware
=========================================================

What:  Turns any exception that escapes the routes into the standard error
       response via GlobalExceptionFilter.catch().
How:   Innermost middleware. The response it returns still flows back out
       through body capture, admin audit, access log, request ID and CORS,
       so a 500 carries X-Request-ID and Access-Control-Allow-Origin and is
       written to the access log.

Starlette renders handlers for `Exception` in ServerErrorMiddleware, which
sits outside every user middleware; the handler registered there only sees
errors raised by the middleware themselves.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.filters.global_exception import global_exception_filter


class UnhandledExceptionMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return await global_exception_filter.catch(request, exc)
