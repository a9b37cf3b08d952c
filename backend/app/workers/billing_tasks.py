# backend/app/workers/billing_tasks.py
from __future__ import annotations

import logging
import random
from typing import Optional

from ..db import SessionLocal
from ..models import Banking, Job
from ..services.billing_cycle import create_first_month_order as _first_month
from ..services.billing_cycle import create_history_orders as _history
from ..services.billing_cycle import create_order_for_next_month as _next_month
from ..services.contracts import check_identity_images as _identity
from ..services.contracts import check_job_status as _job_status
from .celery_app import celery_app

log = logging.getLogger("homekey.tasks")


def _backoff_seconds(retries: int, base: int = 10, cap: int = 300) -> int:
    """Exponential backoff with +/- 20% jitter."""
    delay = min(cap, base * (2 ** max(0, int(retries))))
    jitter = int(delay * 0.2)
    if jitter > 0:
        delay = max(1, delay + random.randint(-jitter, jitter))
    return delay


@celery_app.task(bind=True, max_retries=3, name="app.workers.billing_tasks.check_job_status")
def check_job_status(self, job_id: int) -> dict:
    """Cancels a contract still waiting for activation at its deadline."""
    db = SessionLocal()
    try:
        canceled = _job_status(db, int(job_id))
        db.commit()
        log.info("task.check_job_status", extra={"task": self.name, "job_id": job_id, "status": canceled})
        return {"ok": True, "canceled": canceled}
    except Exception as e:
        db.rollback()
        raise self.retry(exc=e, countdown=_backoff_seconds(self.request.retries))
    finally:
        db.close()


@celery_app.task(bind=True, max_retries=3, name="app.workers.billing_tasks.check_identity_images")
def check_identity_images(self, job_id: int) -> dict:
    db = SessionLocal()
    try:
        reminded = _identity(db, int(job_id))
        db.commit()
        return {"ok": True, "reminded": reminded}
    except Exception as e:
        db.rollback()
        raise self.retry(exc=e, countdown=_backoff_seconds(self.request.retries))
    finally:
        db.close()


@celery_app.task(bind=True, max_retries=3, name="app.workers.billing_tasks.create_first_month_order")
def create_first_month_order(self, job_id: int) -> dict:
    db = SessionLocal()
    try:
        order = _first_month(db, int(job_id))
        db.commit()
        return {"ok": True, "order_id": order.id if order else None}
    except Exception as e:
        db.rollback()
        raise self.retry(exc=e, countdown=_backoff_seconds(self.request.retries))
    finally:
        db.close()


@celery_app.task(bind=True, max_retries=3, name="app.workers.billing_tasks.create_order_for_next_month")
def create_order_for_next_month(self, job_id: int) -> dict:
    """
    Bills the month that just ended and schedules the following run.

    Idempotent: a second delivery finds the order for the period and does nothing.
    """
    db = SessionLocal()
    try:
        order = _next_month(db, int(job_id))
        db.commit()
        return {"ok": True, "order_id": order.id if order else None}
    except Exception as e:
        db.rollback()
        raise self.retry(exc=e, countdown=_backoff_seconds(self.request.retries))
    finally:
        db.close()


@celery_app.task(bind=True, max_retries=5, name="app.workers.billing_tasks.create_history_orders")
def create_history_orders(self, job_id: int, bank_id: Optional[int] = None) -> dict:
    """Paid monthly orders for a contract that started months ago (quick rent)."""
    db = SessionLocal()
    try:
        job = db.get(Job, int(job_id))
        if job is None:
            # enqueued right before the creating request committed
            raise self.retry(countdown=_backoff_seconds(self.request.retries, base=5))

        bank = db.get(Banking, int(bank_id)) if bank_id else None
        orders = _history(db, job, bank=bank)
        db.commit()
        log.info("task.history_orders", extra={"task": self.name, "job_id": job_id, "count": len(orders)})
        return {"ok": True, "created": len(orders)}
    except self.MaxRetriesExceededError:
        log.warning("task.job_not_found", extra={"task": self.name, "job_id": job_id})
        return {"ok": False, "reason": "job_not_found"}
    finally:
        db.close()
