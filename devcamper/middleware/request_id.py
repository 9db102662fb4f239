"""
DevCamper API — Request ID Middleware
======================================

What:  Gives every request a correlation ID, echoed in the `X-Request-ID`
       response header and in every error body.
How:   A client-supplied `X-Request-ID` is reused; otherwise a short UUID is
       generated. The ID is kept in a ContextVar (coroutine-local) so loggers
       and exception handlers can read it without access to the request.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = rid
        return response
