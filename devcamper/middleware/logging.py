"""
DevCamper API — Request Logging Middleware
===========================================

What:  One access-log line per request: method, path (with query string),
       status, duration, request ID, client IP, and the user ID when the
       auth guard identified one.
Why:   The development request log of the API; severity follows the status
       (5xx → ERROR, 4xx → WARNING, else INFO) so failures stand out.

Not logged: request bodies (passwords), cookies, Authorization headers.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from devcamper.middleware.request_id import request_id_var

logger = logging.getLogger("devcamper.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if path == "/health":
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        target = f"{path}?{request.url.query}" if request.url.query else path
        user_id = getattr(request.state, "user_id", None)
        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s%s",
            request.method,
            target,
            status,
            duration_ms,
            rid,
            client_ip,
            f" user={user_id}" if user_id else "",
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
