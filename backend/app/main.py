# backend/app/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .domain.errors import BusinessRuleError
from .logging_config import configure_logging

from .middleware.request_id import RequestIDMiddleware
from .middleware.structured_logging import StructuredLoggingMiddleware

from .routers.health import router as health_router
from .routers.auth import router as auth_router
from .routers.users import router as users_router
from .routers.banking import router as banking_router

from .routers.motels import router as motels_router
from .routers.floors import router as floors_router
from .routers.rooms import router as rooms_router

from .routers.jobs import router as jobs_router
from .routers.orders import router as orders_router
from .routers.transactions import router as transactions_router
from .routers.bills import router as bills_router

from .routers.notifications import router as notifications_router
from .routers.energy import router as energy_router

API_PREFIX = "/api"

log = logging.getLogger("homekey.app")


def _cors_origins() -> list[str]:
    val = settings.cors_allow_origins
    if isinstance(val, str):
        v = val.strip()
        return ["*"] if v == "*" else [x.strip() for x in v.split(",") if x.strip()]
    return list(val) or ["*"]


async def _business_rule_handler(request: Request, exc: BusinessRuleError) -> JSONResponse:
    log.info("request.rejected", extra={"path": request.url.path, "status": exc.status_code, "error": exc.message})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def _unhandled_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("request.failed", extra={"path": request.url.path})
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="HomeKey Motel Backend", version=settings.app_version)

    # request id first so every later log line carries it
    app.add_middleware(StructuredLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BusinessRuleError, _business_rule_handler)
    app.add_exception_handler(Exception, _unhandled_handler)

    # Core + accounts
    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(users_router, prefix=API_PREFIX)
    app.include_router(banking_router, prefix=API_PREFIX)

    # Inventory
    app.include_router(motels_router, prefix=API_PREFIX)
    app.include_router(floors_router, prefix=API_PREFIX)
    app.include_router(rooms_router, prefix=API_PREFIX)

    # Contracts + billing
    app.include_router(jobs_router, prefix=API_PREFIX)
    app.include_router(orders_router, prefix=API_PREFIX)
    app.include_router(transactions_router, prefix=API_PREFIX)
    app.include_router(bills_router, prefix=API_PREFIX)

    app.include_router(notifications_router, prefix=API_PREFIX)
    app.include_router(energy_router, prefix=API_PREFIX)
    return app


app = create_app()
