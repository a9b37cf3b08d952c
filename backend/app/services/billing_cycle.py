# backend/app/services/billing_cycle.py
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import settings
from ..domain.billing import check_out_date, history_periods, monthly_charges
from ..domain.clock import end_of_day, fmt_month, local_today, month_end, month_start, next_month_start, start_of_day
from ..domain.job_status import (
    CANCELED,
    MONTHLY_PAYMENT_COMPLETED,
    PENDING_MONTHLY_PAYMENT,
    can_transition,
    next_status,
)
from ..models import Banking, Job, Order, Room, ORDER_MONTHLY
from .energy import usage_between
from .notifications import notify
from .orders import create_order, record_cash_payment
from .scheduler import CREATE_ORDER_FOR_NEXT_MONTH, schedule

log = logging.getLogger("homekey.billing")

BILLABLE = {PENDING_MONTHLY_PAYMENT, MONTHLY_PAYMENT_COMPLETED}


def existing_monthly_order(db: Session, *, job_id: int, start: date) -> Optional[Order]:
    return db.scalar(
        select(Order).where(Order.job_id == job_id, Order.type == ORDER_MONTHLY, Order.start_time == start)
    )


def monthly_order_for_period(
    db: Session,
    *,
    job: Job,
    start: date,
    end: date,
    paid: bool = False,
    bank: Optional[Banking] = None,
    today: Optional[date] = None,
) -> Order:
    room = db.get(Room, job.room_id)
    usage = usage_between(db, room_id=room.id, start=start, end=end)
    charges = monthly_charges(
        room,
        period_start=start,
        days_stayed=(end - start).days + 1,
        kwh=usage.total_kwh if usage else 0.0,
    )
    order = create_order(
        db,
        job=job,
        type=ORDER_MONTHLY,
        amount=charges.amount,
        description=f"Tiền phòng tháng {fmt_month(start)}",
        expire_time=end_of_day(end + timedelta(days=settings.monthly_order_expire_days)).replace(tzinfo=None),
        start_time=start,
        end_time=end,
        charges=charges,
        energy_detail={"labels": usage.labels, "kwh": usage.daily_kwh} if usage else None,
    )
    if paid:
        record_cash_payment(db, order, bank=bank, today=today)
    return order


def create_history_orders(
    db: Session,
    job: Job,
    *,
    today: Optional[date] = None,
    bank: Optional[Banking] = None,
) -> list[Order]:
    """Paid monthly orders for every month from check-in up to the current month."""
    today = today or local_today()
    out: list[Order] = []
    for start, end in history_periods(job.check_in_date, today, check_out_date(job.check_in_date, job.rental_period)):
        if existing_monthly_order(db, job_id=job.id, start=start) is not None:
            continue
        order = monthly_order_for_period(db, job=job, start=start, end=end, paid=True, bank=bank, today=today)
        out.append(order)
        if can_transition(job.status, "monthly_paid"):
            job.status = next_status(job.status, "monthly_paid")
        job.current_order_id = order.id

    db.add(job)
    db.flush()
    log.info("order.history_created", extra={"job_id": job.id, "count": len(out)})
    return out


def issue_monthly_order(db: Session, job: Job, *, start: date, end: date) -> Order:
    order = monthly_order_for_period(db, job=job, start=start, end=end)
    job.status = next_status(job.status, "monthly_order_issued")
    job.current_order_id = order.id
    db.add(job)

    notify(
        db,
        user_id=job.user_id,
        title="Thông báo đóng tiền phòng",
        content="Vui lòng thanh toán tiền phòng trong vòng 5 ngày.",
        tag="Order",
        content_tag="need-to-payment",
        path=f"job-detail/{job.id}/{job.room_id}",
    )
    log.info("order.monthly_created", extra={"job_id": job.id, "order_id": order.id})
    return order


def _billable(job: Optional[Job]) -> bool:
    return bool(job and not job.is_deleted and job.status != CANCELED and job.is_actived and job.status in BILLABLE)


def _schedule_next(job: Job, today: date) -> None:
    # the next run bills the month that starts now, if the contract reaches it
    if month_start(today) <= check_out_date(job.check_in_date, job.rental_period):
        schedule(CREATE_ORDER_FOR_NEXT_MONTH, eta=start_of_day(next_month_start(today)), job_id=job.id)


def create_first_month_order(db: Session, job_id: int, *, today: Optional[date] = None) -> Optional[Order]:
    """Prorated order for the check-in month, run at the start of the following month."""
    today = today or local_today()
    job = db.get(Job, job_id)
    if not _billable(job):
        log.info("order.first_month_skipped", extra={"job_id": job_id})
        return None

    start = job.check_in_date
    end = min(month_end(start), check_out_date(job.check_in_date, job.rental_period))
    order = None
    if existing_monthly_order(db, job_id=job.id, start=start) is None:
        order = issue_monthly_order(db, job, start=start, end=end)
        db.flush()
    else:
        # billed already by the roomedPayment override; the cycle still continues
        log.info("order.first_month_exists", extra={"job_id": job.id})
    _schedule_next(job, today)
    return order


def create_order_for_next_month(db: Session, job_id: int, *, today: Optional[date] = None) -> Optional[Order]:
    """Order for the month that just ended; reschedules itself while the contract runs."""
    today = today or local_today()
    job = db.get(Job, job_id)
    if not _billable(job):
        log.info("order.next_month_skipped", extra={"job_id": job_id})
        return None

    check_out = check_out_date(job.check_in_date, job.rental_period)
    prev = month_start(today) - relativedelta(months=1)
    start = max(prev, job.check_in_date)
    end = min(month_end(prev), check_out)
    if start > end:
        log.info("order.contract_finished", extra={"job_id": job.id})
        return None

    if existing_monthly_order(db, job_id=job.id, start=start) is not None:
        return None

    order = issue_monthly_order(db, job, start=start, end=end)
    db.flush()
    _schedule_next(job, today)
    return order
