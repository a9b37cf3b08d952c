# backend/app/domain/job_status.py
from __future__ import annotations

from .errors import BusinessRuleError

PENDING_DEPOSIT_PAYMENT = "pendingDepositPayment"
PENDING_ACTIVATED = "pendingActivated"
PENDING_AFTER_CHECK_IN_PAYMENT = "pendingAfterCheckInPayment"
PENDING_MONTHLY_PAYMENT = "pendingMonthlyPayment"
MONTHLY_PAYMENT_COMPLETED = "monthlyPaymentCompleted"
CANCELED = "canceled"

JOB_STATUSES = [
    PENDING_DEPOSIT_PAYMENT,
    PENDING_ACTIVATED,
    PENDING_AFTER_CHECK_IN_PAYMENT,
    PENDING_MONTHLY_PAYMENT,
    MONTHLY_PAYMENT_COMPLETED,
    CANCELED,
]

TERMINAL = {CANCELED}

# jobs in these states hold their room (deposited or rented)
HOLDING = {
    PENDING_ACTIVATED,
    PENDING_AFTER_CHECK_IN_PAYMENT,
    PENDING_MONTHLY_PAYMENT,
    MONTHLY_PAYMENT_COMPLETED,
}

TRANSITIONS: dict[tuple[str, str], str] = {
    (PENDING_DEPOSIT_PAYMENT, "deposit_paid"): PENDING_ACTIVATED,
    (PENDING_ACTIVATED, "activate"): PENDING_AFTER_CHECK_IN_PAYMENT,
    (PENDING_ACTIVATED, "activation_expired"): CANCELED,
    (PENDING_AFTER_CHECK_IN_PAYMENT, "after_check_in_paid"): PENDING_MONTHLY_PAYMENT,
    (PENDING_MONTHLY_PAYMENT, "monthly_order_issued"): PENDING_MONTHLY_PAYMENT,
    (MONTHLY_PAYMENT_COMPLETED, "monthly_order_issued"): PENDING_MONTHLY_PAYMENT,
    (PENDING_MONTHLY_PAYMENT, "monthly_paid"): MONTHLY_PAYMENT_COMPLETED,
    (MONTHLY_PAYMENT_COMPLETED, "monthly_paid"): MONTHLY_PAYMENT_COMPLETED,
}


def next_status(current: str, event: str) -> str:
    if event == "cancel":
        if current in TERMINAL:
            raise BusinessRuleError("Hợp đồng đã bị hủy")
        return CANCELED

    nxt = TRANSITIONS.get((current, event))
    if nxt is None:
        raise BusinessRuleError(f"Không thể chuyển trạng thái hợp đồng ({current} -> {event})")
    return nxt


def can_transition(current: str, event: str) -> bool:
    if event == "cancel":
        return current not in TERMINAL
    return (current, event) in TRANSITIONS
