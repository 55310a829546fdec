"""
QuickNotes Backend — Rate Limiting Middleware
===============================================

What:  Per-IP sliding window limit on API requests.
How:   Keeps each IP's request timestamps in memory; drops the ones older
       than the window; rejects with 429 once the window holds
       `rate_limit_requests` entries.

Limitation:
    State lives in this process. Running several uvicorn workers multiplies
    the effective limit by the worker count.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from quicknotes.config import settings
from quicknotes.exceptions import RateLimitExceededError
from quicknotes.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

# Only the API is limited; the SPA shell, static assets, docs and probes are not
LIMITED_PREFIX = "/api/"

# Run a sweep of idle IPs every this many admitted requests
SWEEP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory sliding window limiter. See module docstring."""

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
    ):
        super().__init__(app)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._admitted = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not request.url.path.startswith(LIMITED_PREFIX):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - self.window_seconds

        recent = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = recent

        if len(recent) >= self.max_requests:
            retry_after = int(recent[0] + self.window_seconds - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(recent),
                self.window_seconds,
            )
            # Raised exceptions would bypass the app's handlers from here,
            # so the 429 body is rendered directly
            exc = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": exc.context,
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(exc.retry_after)},
            )

        recent.append(now)
        self._admitted += 1
        if self._admitted % SWEEP_EVERY == 0:
            self._sweep(window_start)

        return await call_next(request)

    def _sweep(self, window_start: float) -> None:
        """Forget IPs with no requests inside the current window."""
        idle = [
            ip for ip, stamps in self._requests.items()
            if not stamps or stamps[-1] <= window_start
        ]
        for ip in idle:
            del self._requests[ip]
        if idle:
            logger.debug("Dropped %d idle rate-limit entries", len(idle))
