"""
Foundation API Backend — Admin Operation Audit Middleware
===========================================================

What:  Logs every request under /admin/ with the acting user.
How:   Runs after the route (so the session dependency has populated
       request.state.user) and logs method, path, status, duration and the
       user id. The user is read from the shared request state.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("foundation.admin")

ADMIN_PATH_PREFIX = "/admin/"


class AdminOperationMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if not (path + "/").startswith(ADMIN_PATH_PREFIX):
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

        user = getattr(request.state, "user", None)
        user_id = str(user.id) if user is not None else None

        logger.info(
            "Admin operation: %s %s %d %.1fms user=%s",
            request.method,
            path,
            response.status_code,
            duration_ms,
            user_id,
            extra={
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "user_id": user_id,
            },
        )
        return response
