# backend/app/routers/orders.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..auth import get_principal, require_host
from ..db import get_db
from ..domain.audit import emit_audit
from ..models import Job, Order
from ..schemas import BillOut, JobOut, OrderOut, PayCashIn
from ..services.bills import bills_for_order
from ..services.contracts import pay_order_cash
from ..services.ownership import must_get_job, must_get_order, must_get_room, visible_to

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=list[OrderOut])
def list_orders(
    is_completed: Optional[bool] = Query(default=None),
    type: Optional[str] = Query(default=None),
    limit: int = Query(default=200, ge=1, le=2000),
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    q = select(Order).where(Order.job_id.in_(select(Job.id).where(visible_to(Job, p))))
    if is_completed is not None:
        q = q.where(Order.is_completed.is_(is_completed))
    if type:
        q = q.where(Order.type == type)
    return list(db.scalars(q.order_by(desc(Order.id)).limit(limit)).all())


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, db: Session = Depends(get_db), p=Depends(get_principal)):
    return must_get_order(db, order_id=order_id, p=p)


@router.get("/{order_id}/bills", response_model=list[BillOut])
def list_order_bills(order_id: int, db: Session = Depends(get_db), p=Depends(get_principal)):
    order = must_get_order(db, order_id=order_id, p=p)
    return bills_for_order(db, order.id)


@router.post("/{order_id}/pay-cash", response_model=JobOut)
def pay_cash(order_id: int, payload: PayCashIn, db: Session = Depends(get_db), p=Depends(require_host)):
    """Host records a cash payment collected in person."""
    order = must_get_order(db, order_id=order_id, p=p)
    must_get_room(db, room_id=must_get_job(db, job_id=order.job_id).room_id, p=p)
    before = order.model_dump()
    job = pay_order_cash(db, order, bank_id=payload.bank_id)
    db.commit()

    emit_audit(db, actor_user_id=p.user_id, action="order.pay_cash", entity_type="Order", entity_id=order.id, before=before, after=order.model_dump())
    return job
