# backend/tests/test_quick_contracts.py
from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import select

from app.domain.errors import BusinessRuleError
from app.domain.job_status import MONTHLY_PAYMENT_COMPLETED, PENDING_ACTIVATED, PENDING_MONTHLY_PAYMENT
from app.models import Bill, Floor, MotelRoom, Notification, Order, Transaction, ORDER_MONTHLY, TXN_SUCCESS
from app.services.contracts import (
    MSG_DEPOSIT_IN_PAST,
    MSG_DEPOSIT_TOO_FAR,
    MSG_RENT_NOT_PAST,
    quick_deposit,
    quick_rent,
)
from app.services.scheduler import (
    CHECK_IDENTITY_IMAGES,
    CHECK_JOB_STATUS,
    CREATE_FIRST_MONTH_ORDER,
    CREATE_HISTORY_ORDERS,
    CREATE_ORDER_FOR_NEXT_MONTH,
)

TODAY = date(2026, 10, 19)


def _names(sent_tasks):
    return [c["name"] for c in sent_tasks]


def test_quick_deposit_moves_room_to_deposited_and_updates_counters(db, rooms, bank, tenant_fields, sent_tasks):
    room = rooms[0]
    job = quick_deposit(db, check_in="20/10/2026", room_id=room.id, bank_id=bank.id, today=TODAY, **tenant_fields)
    db.commit()

    assert job.status == PENDING_ACTIVATED
    assert job.deposit == 1_500_000
    assert job.bail == 2_000_000
    assert room.status == "deposited"
    assert room.rented_by == job.user_id

    floor = db.get(Floor, room.floor_id)
    motel = db.get(MotelRoom, floor.motel_id)
    for counters in (floor, motel):
        assert counters.total_room == 3
        assert counters.available_room == 2
        assert counters.deposited_room == 1
        assert counters.rented_room == 0

    order = db.get(Order, job.current_order_id)
    assert order.is_completed is True
    txn = db.scalar(select(Transaction).where(Transaction.order_id == order.id))
    assert txn.status == TXN_SUCCESS
    bill = db.scalar(select(Bill).where(Bill.order_id == order.id))
    assert bill.name_bank_owner == "Vietcombank"
    assert bill.name_room == room.name

    check = [c for c in sent_tasks if c["name"] == CHECK_JOB_STATUS]
    assert len(check) == 1
    assert check[0]["kwargs"] == {"job_id": job.id}
    assert check[0]["eta"].date() == date(2026, 10, 27)

    titles = [n.title for n in db.scalars(select(Notification).where(Notification.user_id == job.user_id))]
    assert "Thông báo kích hoạt hợp đồng" in titles


@pytest.mark.parametrize(
    "check_in,message",
    [("18/10/2026", MSG_DEPOSIT_IN_PAST), ("24/10/2026", MSG_DEPOSIT_TOO_FAR), ("2026-10-20", "Định dạng ngày tháng không hợp lệ")],
)
def test_quick_deposit_rejects_check_in_outside_the_window(db, rooms, tenant_fields, check_in, message):
    with pytest.raises(BusinessRuleError) as e:
        quick_deposit(db, check_in=check_in, room_id=rooms[0].id, today=TODAY, **tenant_fields)
    assert e.value.message == message


def test_quick_deposit_accepts_the_last_day_of_the_window(db, rooms, tenant_fields):
    job = quick_deposit(db, check_in="23/10/2026", room_id=rooms[0].id, today=TODAY, **tenant_fields)
    assert job.check_in_date == date(2026, 10, 23)


def test_quick_deposit_on_a_taken_room_is_refused(db, rooms, tenant_fields):
    quick_deposit(db, check_in="20/10/2026", room_id=rooms[0].id, today=TODAY, **tenant_fields)
    db.commit()

    with pytest.raises(BusinessRuleError) as e:
        quick_deposit(db, check_in="20/10/2026", room_id=rooms[0].id, today=TODAY, phone=tenant_fields["phone"])
    assert e.value.message == "Phòng đã được đặt, vui lòng chọn phòng khác"


def test_quick_deposit_needs_signup_fields_for_unknown_phone(db, rooms):
    with pytest.raises(BusinessRuleError) as e:
        quick_deposit(db, check_in="20/10/2026", room_id=rooms[0].id, today=TODAY, phone="0900000009")
    assert e.value.message == "Tài khoản không tồn tại, vui lòng nhập đủ thông tin để tạo tài khoản"


def test_quick_deposit_refuses_a_locked_account(db, rooms, tenant_fields):
    from app.services.accounts import find_user_by_phone

    quick_deposit(db, check_in="20/10/2026", room_id=rooms[0].id, today=TODAY, **tenant_fields)
    user = find_user_by_phone(db, tenant_fields["phone"])
    user.is_locked = True
    db.commit()

    with pytest.raises(BusinessRuleError) as e:
        quick_deposit(db, check_in="20/10/2026", room_id=rooms[1].id, today=TODAY, phone=tenant_fields["phone"])
    assert "bị khóa" in e.value.message


def test_quick_rent_with_one_past_month_builds_history_inline(db, rooms, bank, tenant_fields, sent_tasks):
    room = rooms[0]
    job = quick_rent(
        db, check_in="15/09/2026", room_id=room.id, rental_period=6, bank_id=bank.id, today=TODAY, **tenant_fields
    )
    db.commit()

    assert room.status == "rented"
    assert job.is_actived is True
    assert job.room_password == "1234"
    assert job.status == MONTHLY_PAYMENT_COMPLETED

    orders = list(db.scalars(select(Order).where(Order.job_id == job.id).order_by(Order.id)))
    assert [o.type for o in orders] == ["deposit", "afterCheckInCost", ORDER_MONTHLY]
    assert all(o.is_completed for o in orders)

    september = orders[-1]
    assert september.start_time == date(2026, 9, 15)
    assert september.end_time == date(2026, 9, 30)
    assert september.number_day_stay == 16
    assert september.room_price == 1_600_000
    assert job.current_order_id == september.id

    names = _names(sent_tasks)
    assert CREATE_ORDER_FOR_NEXT_MONTH in names
    assert CHECK_IDENTITY_IMAGES in names
    assert CREATE_HISTORY_ORDERS not in names
    nxt = next(c for c in sent_tasks if c["name"] == CREATE_ORDER_FOR_NEXT_MONTH)
    assert nxt["eta"].date() == date(2026, 11, 1)


def test_quick_rent_inline_threshold_counts_from_the_check_in_day(db, rooms, bank, tenant_fields, sent_tasks):
    # two month starts back, but less than two whole months since check-in
    job = quick_rent(
        db, check_in="25/08/2026", room_id=rooms[0].id, rental_period=6, bank_id=bank.id, today=TODAY, **tenant_fields
    )
    db.commit()

    monthly = list(
        db.scalars(select(Order).where(Order.job_id == job.id, Order.type == ORDER_MONTHLY).order_by(Order.start_time))
    )
    assert [o.start_time for o in monthly] == [date(2026, 8, 25), date(2026, 9, 1)]
    assert monthly[0].number_day_stay == 7
    assert CREATE_HISTORY_ORDERS not in _names(sent_tasks)
    assert CREATE_ORDER_FOR_NEXT_MONTH in _names(sent_tasks)


def test_quick_rent_with_many_past_months_defers_history_to_a_task(db, rooms, bank, tenant_fields, sent_tasks):
    job = quick_rent(
        db, check_in="10/07/2026", room_id=rooms[0].id, rental_period=12, bank_id=bank.id, today=TODAY, **tenant_fields
    )
    db.commit()

    assert job.status == PENDING_MONTHLY_PAYMENT
    assert db.scalar(select(Order.id).where(Order.job_id == job.id, Order.type == ORDER_MONTHLY)) is None

    history = next(c for c in sent_tasks if c["name"] == CREATE_HISTORY_ORDERS)
    assert history["kwargs"] == {"job_id": job.id, "bank_id": bank.id}
    assert history["eta"] is None


def test_quick_rent_started_this_month_waits_for_the_first_month_order(db, rooms, tenant_fields, sent_tasks):
    job = quick_rent(db, check_in="01/10/2026", room_id=rooms[0].id, rental_period=3, today=TODAY, **tenant_fields)
    db.commit()

    assert job.status == PENDING_MONTHLY_PAYMENT
    names = _names(sent_tasks)
    assert CREATE_FIRST_MONTH_ORDER in names
    assert CREATE_ORDER_FOR_NEXT_MONTH not in names


def test_quick_rent_needs_a_check_in_in_the_past(db, rooms, tenant_fields):
    with pytest.raises(BusinessRuleError) as e:
        quick_rent(db, check_in="19/10/2026", room_id=rooms[0].id, today=TODAY, **tenant_fields)
    assert e.value.message == MSG_RENT_NOT_PAST


def test_quick_rent_refuses_a_contract_that_ends_this_month(db, rooms, tenant_fields):
    with pytest.raises(BusinessRuleError) as e:
        quick_rent(db, check_in="20/09/2026", room_id=rooms[0].id, rental_period=1, today=TODAY, **tenant_fields)
    assert "hết hạn trong tháng này" in e.value.message
