"""
Foundation API Backend — Request ID Middleware
================================================

What:  Gives every request a correlation ID and echoes it on the response.
How:   Uses the client's X-Request-ID when present, otherwise generates one;
       stores it in a ContextVar (loggers) and request.state (handlers and the
       exception filter).
When:  Outermost application middleware, so every later log line carries it.

Error responses report the same value as `requestId`, so a user quoting it
from an error message lets support find the matching log entries.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
