# backend/app/services/scheduler.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from ..workers.celery_app import celery_app

log = logging.getLogger("homekey.scheduler")

# task names (registered in app.workers.*)
CHECK_JOB_STATUS = "app.workers.billing_tasks.check_job_status"
CHECK_IDENTITY_IMAGES = "app.workers.billing_tasks.check_identity_images"
CREATE_FIRST_MONTH_ORDER = "app.workers.billing_tasks.create_first_month_order"
CREATE_ORDER_FOR_NEXT_MONTH = "app.workers.billing_tasks.create_order_for_next_month"
CREATE_HISTORY_ORDERS = "app.workers.billing_tasks.create_history_orders"
PROCESS_BULK_DEPOSIT = "app.workers.import_tasks.process_bulk_deposit"
PROCESS_BULK_RENT = "app.workers.import_tasks.process_bulk_rent"


def schedule(task_name: str, *, eta: Optional[datetime] = None, **kwargs: Any) -> None:
    """
    Hand a named task to Celery, optionally delayed until `eta`.

    Sent by name so services never import worker modules.
    """
    log.info("task.scheduled", extra={"task": task_name, "eta": eta.isoformat() if eta else None})
    celery_app.send_task(task_name, kwargs=kwargs, eta=eta)
