# backend/app/logging_config.py
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from .middleware.request_id import get_request_id

# structured extras copied onto the JSON line when a call site sets them
EXTRA_KEYS = (
    "user_id",
    "motel_id",
    "floor_id",
    "room_id",
    "job_id",
    "order_id",
    "transaction_id",
    "task",
    "mode",
    "row",
    "status",
    "event",
    "effect",
    "requested",
    "count",
    "created_count",
    "failed_count",
    "eta",
    "from",
    "to",
    "error",
    "path",
    "method",
    "status_code",
    "latency_ms",
    "user_email",
    "tag",
    "type",
)


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record: ts, level, logger, message, request_id
    (inside a request), exception text and any known structured extras.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        rid = get_request_id()
        if rid:
            payload["request_id"] = rid

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        for k in EXTRA_KEYS:
            if hasattr(record, k):
                payload[k] = getattr(record, k)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging() -> None:
    level = (os.getenv("LOG_LEVEL") or "INFO").upper()

    root = logging.getLogger()
    root.setLevel(level)

    # uvicorn --reload re-imports the app
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel((os.getenv("SQL_LOG_LEVEL") or "WARNING").upper())
    logging.getLogger("celery").setLevel((os.getenv("CELERY_LOG_LEVEL") or level).upper())
