# backend/tests/test_payments.py
from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import select

from app.domain.errors import BusinessRuleError
from app.domain.job_status import PENDING_ACTIVATED, PENDING_AFTER_CHECK_IN_PAYMENT, PENDING_MONTHLY_PAYMENT
from app.models import Bill, Order, TXN_CANCEL, TXN_SUCCESS
from app.services.accounts import create_customer
from app.services.bills import NO_BANK_ACCOUNT
from app.services.contracts import (
    activate_job,
    approve_transaction,
    cancel_job,
    create_deposit_job,
    pay_order_cash,
    quick_deposit,
)
from app.services.orders import cancel_transaction, submit_payment
from app.services.scheduler import CHECK_JOB_STATUS, CREATE_FIRST_MONTH_ORDER

TODAY = date(2026, 10, 19)


@pytest.fixture
def customer(db):
    user = create_customer(
        db, first_name="Minh", last_name="Trần", email="minh@test.local", password="123456", phone="0987654321"
    )
    db.commit()
    return user


def test_tenant_pays_deposit_by_transfer_then_activates(db, rooms, customer, sent_tasks):
    room = rooms[0]
    job = create_deposit_job(db, user=customer, room_id=room.id, check_in="19/10/2026", rental_period=2, today=TODAY)
    db.commit()
    deposit_order = db.get(Order, job.current_order_id)
    assert deposit_order.amount == 1_500_000
    assert room.status == "available"

    txn = submit_payment(db, deposit_order, bank=None, key_payment="FT123")
    db.commit()

    # a pending transfer blocks the room for everyone else
    with pytest.raises(BusinessRuleError) as e:
        quick_deposit(db, phone="0987654321", check_in="20/10/2026", room_id=room.id, today=TODAY)
    assert e.value.message.startswith("Đã có giao dịch cọc")

    approve_transaction(db, txn, today=TODAY)
    db.commit()
    assert txn.status == TXN_SUCCESS
    assert job.status == PENDING_ACTIVATED
    assert room.status == "deposited"
    bill = db.scalar(select(Bill).where(Bill.order_id == deposit_order.id))
    assert bill.name_bank_owner == NO_BANK_ACCOUNT
    assert CHECK_JOB_STATUS in [c["name"] for c in sent_tasks]

    after = activate_job(db, job, today=TODAY)
    db.commit()
    assert job.status == PENDING_AFTER_CHECK_IN_PAYMENT
    assert after.amount == 1_500_000 + 2_000_000

    pay_order_cash(db, after, today=TODAY)
    db.commit()
    assert job.status == PENDING_MONTHLY_PAYMENT
    assert job.is_actived is True
    assert room.status == "rented"
    first = next(c for c in sent_tasks if c["name"] == CREATE_FIRST_MONTH_ORDER)
    assert first["eta"].date() == date(2026, 11, 1)


def test_activation_before_check_in_is_refused(db, rooms, customer):
    job = create_deposit_job(db, user=customer, room_id=rooms[0].id, check_in="22/10/2026", rental_period=1, today=TODAY)
    pay_order_cash(db, db.get(Order, job.current_order_id), today=TODAY)

    with pytest.raises(BusinessRuleError) as e:
        activate_job(db, job, today=TODAY)
    assert e.value.message == "Chưa đến ngày nhận phòng, chưa thể kích hoạt hợp đồng"


def test_second_transfer_for_the_same_order_is_refused(db, rooms, customer):
    job = create_deposit_job(db, user=customer, room_id=rooms[0].id, check_in="19/10/2026", rental_period=1, today=TODAY)
    order = db.get(Order, job.current_order_id)
    submit_payment(db, order, bank=None)

    with pytest.raises(BusinessRuleError):
        submit_payment(db, order, bank=None)


def test_rejected_transfer_leaves_the_order_open(db, rooms, customer):
    job = create_deposit_job(db, user=customer, room_id=rooms[0].id, check_in="19/10/2026", rental_period=1, today=TODAY)
    order = db.get(Order, job.current_order_id)
    txn = submit_payment(db, order, bank=None)

    cancel_transaction(db, txn)
    assert txn.status == TXN_CANCEL
    assert order.is_completed is False
    with pytest.raises(BusinessRuleError):
        approve_transaction(db, txn, today=TODAY)


def test_paying_twice_is_refused(db, rooms, customer):
    job = create_deposit_job(db, user=customer, room_id=rooms[0].id, check_in="19/10/2026", rental_period=1, today=TODAY)
    order = db.get(Order, job.current_order_id)
    pay_order_cash(db, order, today=TODAY)

    with pytest.raises(BusinessRuleError) as e:
        pay_order_cash(db, order, today=TODAY)
    assert e.value.message == "Hóa đơn đã được thanh toán"


def test_cancel_drops_pending_transfers_and_frees_the_room(db, rooms, customer):
    room = rooms[0]
    job = create_deposit_job(db, user=customer, room_id=room.id, check_in="19/10/2026", rental_period=1, today=TODAY)
    txn = submit_payment(db, db.get(Order, job.current_order_id), bank=None)

    cancel_job(db, job)
    assert txn.status == TXN_CANCEL
    assert room.status == "available"
    with pytest.raises(BusinessRuleError):
        cancel_job(db, job)


def test_deposit_below_minimum_months_is_refused(db, rooms, customer):
    rooms[0].minimum_months = 6
    with pytest.raises(BusinessRuleError) as e:
        create_deposit_job(db, user=customer, room_id=rooms[0].id, check_in="19/10/2026", rental_period=3, today=TODAY)
    assert "tối thiểu" in e.value.message
