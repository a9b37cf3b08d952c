# backend/tests/test_billing_cycle.py
from __future__ import annotations

from datetime import date, datetime

import pytest
from sqlalchemy import select

from app.domain.job_status import CANCELED, PENDING_MONTHLY_PAYMENT
from app.models import Floor, Notification, Order, ORDER_MONTHLY
from app.services.billing_cycle import create_first_month_order, create_history_orders, create_order_for_next_month
from app.services.contracts import check_identity_images, check_job_status, quick_deposit, quick_rent, set_identity_images
from app.services.energy import record_reading
from app.services.rooms import edit_room_status
from app.services.scheduler import CREATE_ORDER_FOR_NEXT_MONTH

TODAY = date(2026, 10, 19)


def _rent_from_october(db, room, tenant_fields, rental_period=3):
    job = quick_rent(db, check_in="01/10/2026", room_id=room.id, rental_period=rental_period, today=TODAY, **tenant_fields)
    db.commit()
    return job


def test_first_month_order_bills_the_check_in_month_with_energy(db, rooms, tenant_fields, sent_tasks):
    room = rooms[0]
    job = _rent_from_october(db, room, tenant_fields)
    record_reading(db, room_id=room.id, kwh=100, recorded_at=datetime(2026, 10, 1, 8, 0))
    record_reading(db, room_id=room.id, kwh=180, recorded_at=datetime(2026, 10, 31, 20, 0))
    sent_tasks.clear()

    order = create_first_month_order(db, job.id, today=date(2026, 11, 1))
    db.commit()

    assert order.type == ORDER_MONTHLY
    assert (order.start_time, order.end_time) == (date(2026, 10, 1), date(2026, 10, 31))
    assert order.electric_number == 80
    assert order.electric_price == 280_000
    # rent + water (2 people) + wifi (2 people) + parking (1) + garbage + electricity
    assert order.amount == pytest.approx(3_000_000 + 200_000 + 100_000 + 100_000 + 30_000 + 280_000)
    assert order.is_completed is False
    assert job.status == PENDING_MONTHLY_PAYMENT
    assert job.current_order_id == order.id

    assert [c["name"] for c in sent_tasks] == [CREATE_ORDER_FOR_NEXT_MONTH]
    assert sent_tasks[0]["eta"].date() == date(2026, 12, 1)

    titles = [n.title for n in db.scalars(select(Notification).where(Notification.user_id == job.user_id))]
    assert "Thông báo đóng tiền phòng" in titles


def test_first_month_order_is_idempotent(db, rooms, tenant_fields, sent_tasks):
    job = _rent_from_october(db, rooms[0], tenant_fields)
    assert create_first_month_order(db, job.id, today=date(2026, 11, 1)) is not None
    db.commit()
    sent_tasks.clear()

    assert create_first_month_order(db, job.id, today=date(2026, 11, 1)) is None
    # the follow-up run is idempotent too, so re-queueing it is harmless
    assert [c["name"] for c in sent_tasks] == [CREATE_ORDER_FOR_NEXT_MONTH]
    assert len(db.scalars(select(Order).where(Order.job_id == job.id, Order.type == ORDER_MONTHLY)).all()) == 1


def test_next_month_order_covers_the_month_that_just_ended(db, rooms, tenant_fields, sent_tasks):
    job = _rent_from_october(db, rooms[0], tenant_fields)
    create_first_month_order(db, job.id, today=date(2026, 11, 1))
    db.commit()

    order = create_order_for_next_month(db, job.id, today=date(2026, 12, 1))
    db.commit()
    assert (order.start_time, order.end_time) == (date(2026, 11, 1), date(2026, 11, 30))
    assert order.room_price == 3_000_000
    assert order.electric_price == 0


def test_billing_stops_after_check_out(db, rooms, tenant_fields, sent_tasks):
    # 01/10 for 3 months checks out on 31/12
    job = _rent_from_october(db, rooms[0], tenant_fields)
    last = create_order_for_next_month(db, job.id, today=date(2027, 1, 1))
    db.commit()
    assert (last.start_time, last.end_time) == (date(2026, 12, 1), date(2026, 12, 31))

    sent_tasks.clear()
    assert create_order_for_next_month(db, job.id, today=date(2027, 2, 1)) is None
    assert sent_tasks == []


def test_history_orders_skip_months_already_billed(db, rooms, tenant_fields):
    job = quick_rent(db, check_in="10/07/2026", room_id=rooms[0].id, rental_period=12, today=TODAY, **tenant_fields)
    db.commit()

    first = create_history_orders(db, job, today=TODAY)
    db.commit()
    assert [o.start_time for o in first] == [date(2026, 7, 10), date(2026, 8, 1), date(2026, 9, 1)]
    assert all(o.is_completed for o in first)

    assert create_history_orders(db, job, today=TODAY) == []


def test_unactivated_contract_is_canceled_at_the_deadline(db, rooms, tenant_fields):
    room = rooms[0]
    job = quick_deposit(db, check_in="20/10/2026", room_id=room.id, today=TODAY, **tenant_fields)
    db.commit()

    assert check_job_status(db, job.id) is True
    db.commit()
    assert job.status == CANCELED
    assert room.status == "available"
    assert room.rented_by is None
    floor = db.get(Floor, room.floor_id)
    assert (floor.available_room, floor.deposited_room) == (3, 0)

    # a second delivery of the same timer is a no-op
    assert check_job_status(db, job.id) is False


def test_identity_reminder_only_when_images_are_missing(db, rooms, host, tenant_fields):
    job = _rent_from_october(db, rooms[0], tenant_fields)

    assert check_identity_images(db, job.id) is True
    owner_notes = db.scalars(select(Notification).where(Notification.user_id == host.id)).all()
    assert any(n.content_tag == "missing-identity-images" for n in owner_notes)

    set_identity_images(db, job, ["front.jpg", "back.jpg"])
    db.commit()
    assert check_identity_images(db, job.id) is False


def test_roomed_payment_override_does_not_stop_the_monthly_cycle(db, rooms, tenant_fields, sent_tasks):
    room = rooms[0]
    job = _rent_from_october(db, room, tenant_fields)
    edit_room_status(db, room.id, "roomedPayment", today=TODAY)
    db.commit()
    sent_tasks.clear()

    # October is already billed by the override
    assert create_first_month_order(db, job.id, today=date(2026, 11, 1)) is None
    assert [c["name"] for c in sent_tasks] == [CREATE_ORDER_FOR_NEXT_MONTH]
    assert sent_tasks[0]["eta"].date() == date(2026, 12, 1)

    november = create_order_for_next_month(db, job.id, today=date(2026, 12, 1))
    db.commit()
    assert (november.start_time, november.end_time) == (date(2026, 11, 1), date(2026, 11, 30))
    starts = db.scalars(
        select(Order.start_time).where(Order.job_id == job.id, Order.type == ORDER_MONTHLY).order_by(Order.start_time)
    ).all()
    assert starts == [date(2026, 10, 1), date(2026, 11, 1)]
