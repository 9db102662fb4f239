"""
DevCamper API — Rate Limiting Middleware
=========================================

What:  Per-IP sliding window rate limiter (default: 100 requests / 10 minutes).
How:   Keeps the timestamps of each IP's requests inside the window in
       memory; once the count reaches the limit the request is answered with
       429 and a Retry-After header, in the same body shape as every other
       API error.

Single-process only: each uvicorn worker process keeps its own counters.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from devcamper.config import settings
from devcamper.exceptions import RateLimitExceededError
from devcamper.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[str, List[float]] = defaultdict(list)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        now = time.time()
        window_start = now - settings.rate_limit_window

        # Drop timestamps that left the window
        recent = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = recent

        if len(recent) >= settings.rate_limit_requests:
            retry_after = int(recent[0] + settings.rate_limit_window - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(recent),
                settings.rate_limit_window,
            )
            exc = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "success": False,
                    "error": exc.error_code,
                    "message": exc.message,
                    "details": exc.context,
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(retry_after)},
            )

        recent.append(now)

        # Every ~1000 tracked requests, forget IPs that went quiet
        if sum(len(v) for v in self._requests.values()) % 1000 == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or max(timestamps) < window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]
        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
