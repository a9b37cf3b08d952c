# backend/app/middleware/request_id.py
from __future__ import annotations

import uuid
from contextvars import ContextVar
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

HEADER = "X-Request-ID"


def get_request_id() -> Optional[str]:
    return request_id_ctx.get()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Reuses the caller's X-Request-ID or mints a uuid4, exposes it on
    request.state and the logging ContextVar, and echoes it back.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request.headers.get(HEADER) or str(uuid.uuid4())
        request.state.request_id = rid

        token = request_id_ctx.set(rid)
        try:
            resp = await call_next(request)
            resp.headers[HEADER] = rid
            return resp
        finally:
            request_id_ctx.reset(token)
