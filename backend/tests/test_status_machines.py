# backend/tests/test_status_machines.py
from __future__ import annotations

from contextlib import contextmanager

import pytest

from app.domain import job_status as js
from app.domain import room_status as rs
from app.domain.errors import BusinessRuleError


def test_happy_path_through_the_contract_lifecycle():
    s = js.PENDING_DEPOSIT_PAYMENT
    s = js.next_status(s, "deposit_paid")
    assert s == js.PENDING_ACTIVATED
    s = js.next_status(s, "activate")
    assert s == js.PENDING_AFTER_CHECK_IN_PAYMENT
    s = js.next_status(s, "after_check_in_paid")
    assert s == js.PENDING_MONTHLY_PAYMENT
    s = js.next_status(s, "monthly_paid")
    assert s == js.MONTHLY_PAYMENT_COMPLETED
    s = js.next_status(s, "monthly_order_issued")
    assert s == js.PENDING_MONTHLY_PAYMENT


def test_activation_expiry_cancels_only_pending_activation():
    assert js.next_status(js.PENDING_ACTIVATED, "activation_expired") == js.CANCELED
    with pytest.raises(BusinessRuleError):
        js.next_status(js.PENDING_MONTHLY_PAYMENT, "activation_expired")


def test_cancel_works_from_any_open_state_but_not_twice():
    for s in js.JOB_STATUSES:
        if s == js.CANCELED:
            assert js.can_transition(s, "cancel") is False
            with pytest.raises(BusinessRuleError):
                js.next_status(s, "cancel")
        else:
            assert js.next_status(s, "cancel") == js.CANCELED


def test_skipping_the_deposit_is_rejected():
    assert js.can_transition(js.PENDING_DEPOSIT_PAYMENT, "activate") is False
    with pytest.raises(BusinessRuleError):
        js.next_status(js.PENDING_DEPOSIT_PAYMENT, "activate")


@pytest.mark.parametrize(
    "current,requested,final,effect",
    [
        (rs.AVAILABLE, rs.DEPOSITED, rs.DEPOSITED, rs.CONFIRM_DEPOSIT),
        (rs.DEPOSITED, rs.DEPOSITED, rs.DEPOSITED, rs.REOPEN_DEPOSIT),
        (rs.AVAILABLE, rs.RENTED, rs.RENTED, rs.ACTIVATE_RENT),
        (rs.RENTED, rs.MONTHLY_PAYMENT, rs.RENTED, rs.CONFIRM_MONTHLY),
        (rs.RENTED, rs.ROOMED_PAYMENT, rs.RENTED, rs.START_MONTHLY_BILLING),
        (rs.RENTED, rs.AVAILABLE, rs.AVAILABLE, None),
    ],
)
def test_room_status_plans(current, requested, final, effect):
    plan = rs.plan_status_change(current, requested)
    assert plan.final_status == final
    assert plan.effect == effect


def test_unknown_room_status_is_rejected():
    with pytest.raises(BusinessRuleError) as e:
        rs.plan_status_change(rs.AVAILABLE, "broken")
    assert e.value.message == "Trạng thái phòng không hợp lệ"


def test_roomed_payment_needs_a_rented_room():
    with pytest.raises(BusinessRuleError) as e:
        rs.plan_status_change(rs.DEPOSITED, rs.ROOMED_PAYMENT)
    assert e.value.status_code == 400


def test_business_rule_error_passes_through_generator_context_managers():
    @contextmanager
    def session_scope():
        yield

    # contextlib rewrites __traceback__ on the way out
    with pytest.raises(BusinessRuleError) as e:
        with session_scope():
            raise BusinessRuleError("Phòng không tồn tại", status_code=404)
    assert (e.value.message, e.value.status_code) == ("Phòng không tồn tại", 404)
    assert str(e.value) == "Phòng không tồn tại"
