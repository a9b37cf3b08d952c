# backend/app/workers/celery_app.py
from __future__ import annotations

from celery import Celery

from ..config import settings

celery_app = Celery(
    "homekey",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["app.workers.billing_tasks", "app.workers.import_tasks"],
)

celery_app.conf.update(
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_reject_on_worker_lost=True,
    task_track_started=True,
    timezone=settings.timezone,
    enable_utc=True,
)

# billing timers and spreadsheet imports never share a worker queue
celery_app.conf.task_routes = {
    "app.workers.billing_tasks.*": {"queue": "billing"},
    "app.workers.import_tasks.*": {"queue": "imports"},
}
