# backend/app/services/orders.py
from __future__ import annotations

import json
import logging
import secrets
from datetime import date, datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..domain.billing import MonthlyCharges
from ..domain.errors import BusinessRuleError
from ..models import (
    Banking,
    Job,
    Order,
    Room,
    Transaction,
    PAY_BANKING,
    PAY_CASH,
    TXN_CANCEL,
    TXN_SUCCESS,
    TXN_WAITING,
)
from .bills import create_bill
from .inventory import room_floor_motel

log = logging.getLogger("homekey.orders")


def random_key() -> str:
    """8 upper-case hex chars, used for order keys and payment references."""
    return secrets.token_hex(4).upper()


def _unique_order_key(db: Session) -> str:
    while True:
        k = random_key()
        if db.scalar(select(Order.id).where(Order.key_order == k)) is None:
            return k


def create_order(
    db: Session,
    *,
    job: Job,
    type: str,
    amount: float,
    description: str,
    expire_time: Optional[datetime] = None,
    start_time: Optional[date] = None,
    end_time: Optional[date] = None,
    charges: Optional[MonthlyCharges] = None,
    energy_detail: Optional[dict] = None,
) -> Order:
    order = Order(
        user_id=job.user_id,
        job_id=job.id,
        key_order=_unique_order_key(db),
        type=type,
        amount=float(amount),
        description=description,
        is_completed=False,
        expire_time=expire_time,
        start_time=start_time,
        end_time=end_time,
        energy_detail_json=json.dumps(energy_detail) if energy_detail else None,
        created_at=datetime.utcnow(),
    )
    if charges is not None:
        order.number_day_stay = charges.number_day_stay
        order.electric_number = charges.electric_number
        order.electric_price = charges.electric_price
        order.water_price = charges.water_price
        order.service_price = charges.service_price
        order.vehicle_price = charges.vehicle_price
        order.room_price = charges.room_price
        order.wifi_price = charges.wifi_price
    db.add(order)
    db.flush()
    log.info("order.created", extra={"order_id": order.id, "job_id": job.id, "type": type})
    return order


def _new_transaction(
    db: Session,
    *,
    order: Order,
    status: str,
    payment_method: str,
    bank: Optional[Banking],
    key_payment: Optional[str],
) -> Transaction:
    job = db.get(Job, order.job_id)
    room = db.get(Room, job.room_id)
    _, motel = room_floor_motel(db, room)
    if motel is None:
        raise BusinessRuleError("Tòa nhà không hợp lệ")

    txn = Transaction(
        user_id=order.user_id,
        order_id=order.id,
        motel_id=motel.id,
        room_id=room.id,
        banking_id=bank.id if bank else None,
        key_payment=key_payment or random_key(),
        key_order=order.key_order,
        description=order.description,
        amount=order.amount,
        status=status,
        payment_method=payment_method,
        type=order.type,
        created_at=datetime.utcnow(),
    )
    db.add(txn)
    db.flush()
    return txn


def record_cash_payment(
    db: Session,
    order: Order,
    *,
    bank: Optional[Banking] = None,
    key_payment: Optional[str] = None,
    today: Optional[date] = None,
) -> Transaction:
    """Mark `order` paid in cash: completes it, writes a success transaction and its bill."""
    if order.is_completed:
        raise BusinessRuleError("Hóa đơn đã được thanh toán")

    order.is_completed = True
    order.payment_method = PAY_CASH
    db.add(order)

    txn = _new_transaction(db, order=order, status=TXN_SUCCESS, payment_method=PAY_CASH, bank=bank, key_payment=key_payment)
    create_bill(db, order=order, transaction=txn, bank=bank, today=today)
    return txn


def create_paid_order(
    db: Session,
    *,
    job: Job,
    type: str,
    amount: float,
    description: str,
    expire_time: Optional[datetime] = None,
    bank: Optional[Banking] = None,
    key_payment: Optional[str] = None,
    today: Optional[date] = None,
    **period,
) -> Order:
    order = create_order(db, job=job, type=type, amount=amount, description=description, expire_time=expire_time, **period)
    record_cash_payment(db, order, bank=bank, key_payment=key_payment, today=today)
    return order


def submit_payment(
    db: Session,
    order: Order,
    *,
    bank: Optional[Banking],
    key_payment: Optional[str] = None,
) -> Transaction:
    """Tenant reports a bank transfer; the host approves or rejects it later."""
    if order.is_completed:
        raise BusinessRuleError("Hóa đơn đã được thanh toán")

    pending = db.scalar(
        select(Transaction.id).where(
            Transaction.order_id == order.id,
            Transaction.status == TXN_WAITING,
            Transaction.is_deleted.is_(False),
        )
    )
    if pending is not None:
        raise BusinessRuleError("Hóa đơn đã có giao dịch đang chờ phê duyệt")

    return _new_transaction(
        db, order=order, status=TXN_WAITING, payment_method=PAY_BANKING, bank=bank, key_payment=key_payment
    )


def confirm_transaction(db: Session, txn: Transaction, *, today: Optional[date] = None) -> Order:
    if txn.status != TXN_WAITING:
        raise BusinessRuleError("Giao dịch không ở trạng thái chờ phê duyệt")

    order = db.get(Order, txn.order_id)
    if order.is_completed:
        raise BusinessRuleError("Hóa đơn đã được thanh toán")

    txn.status = TXN_SUCCESS
    order.is_completed = True
    order.payment_method = txn.payment_method
    db.add_all([txn, order])
    create_bill(db, order=order, transaction=txn, today=today)
    return order


def cancel_transaction(db: Session, txn: Transaction) -> Transaction:
    if txn.status != TXN_WAITING:
        raise BusinessRuleError("Giao dịch không ở trạng thái chờ phê duyệt")
    txn.status = TXN_CANCEL
    db.add(txn)
    return txn
