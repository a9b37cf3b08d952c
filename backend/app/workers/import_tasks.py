# backend/app/workers/import_tasks.py
from __future__ import annotations

import logging
from typing import Optional

from ..db import SessionLocal
from ..services.imports import MODE_DEPOSIT, MODE_RENT, process_rows
from .celery_app import celery_app

log = logging.getLogger("homekey.tasks")


def _run(mode: str, rows: list[dict], bank_id: Optional[int], admin_user_id: Optional[int]) -> dict:
    db = SessionLocal()
    try:
        out = process_rows(db, rows, mode=mode, bank_id=bank_id, admin_user_id=admin_user_id)
        return {"ok": True, **out}
    finally:
        db.close()


# rows were validated before enqueueing and each row commits on its own,
# so these tasks are not retried; a retry would duplicate the rows that succeeded
@celery_app.task(name="app.workers.import_tasks.process_bulk_deposit")
def process_bulk_deposit(rows: list[dict], bank_id: Optional[int] = None, admin_user_id: Optional[int] = None) -> dict:
    log.info("task.bulk_deposit", extra={"mode": MODE_DEPOSIT, "count": len(rows)})
    return _run(MODE_DEPOSIT, rows, bank_id, admin_user_id)


@celery_app.task(name="app.workers.import_tasks.process_bulk_rent")
def process_bulk_rent(rows: list[dict], bank_id: Optional[int] = None, admin_user_id: Optional[int] = None) -> dict:
    log.info("task.bulk_rent", extra={"mode": MODE_RENT, "count": len(rows)})
    return _run(MODE_RENT, rows, bank_id, admin_user_id)
