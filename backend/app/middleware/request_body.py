"""
Foundation API Backend — Request Body Capture
===============================================

What:  Keeps the parsed JSON body of write requests on request.state.body.
Who:   Read by the global exception filter when it reports a 5xx error
       (after redaction). Nothing else depends on it.

Only JSON bodies of POST / PUT / PATCH are captured; anything that does not
parse is left out rather than stored raw.
"""

import json

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

CAPTURED_METHODS = frozenset({"POST", "PUT", "PATCH"})


class RequestBodyMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request.state.body = None
        content_type = request.headers.get("content-type", "")
        if request.method in CAPTURED_METHODS and content_type.startswith("application/json"):
            # Starlette caches the body, so the route can still read it
            raw = await request.body()
            if raw:
                try:
                    request.state.body = json.loads(raw)
                except ValueError:
                    pass
        return await call_next(request)
