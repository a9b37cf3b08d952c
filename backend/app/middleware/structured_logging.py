# backend/app/middleware/structured_logging.py
from __future__ import annotations

import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

log = logging.getLogger("homekey.request")


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    One log line per request: method, path, status_code, latency_ms and the
    dev-mode user header. The request id comes from the JSON formatter.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        t0 = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            log.info(
                "http_request",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": status_code,
                    "latency_ms": int((time.perf_counter() - t0) * 1000),
                    "user_email": request.headers.get("X-User-Email"),
                },
            )
