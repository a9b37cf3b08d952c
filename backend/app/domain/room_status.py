# backend/app/domain/room_status.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .errors import BusinessRuleError

AVAILABLE = "available"
DEPOSITED = "deposited"
RENTED = "rented"

# admin-only pseudo statuses: they settle a payment and leave the room rented
MONTHLY_PAYMENT = "monthlyPayment"
ROOMED_PAYMENT = "roomedPayment"

REQUESTABLE = {AVAILABLE, DEPOSITED, RENTED, MONTHLY_PAYMENT, ROOMED_PAYMENT}

# side effects on the room's open job
CONFIRM_DEPOSIT = "confirm_deposit"
REOPEN_DEPOSIT = "reopen_deposit"
ACTIVATE_RENT = "activate_rent"
CONFIRM_MONTHLY = "confirm_monthly"
START_MONTHLY_BILLING = "start_monthly_billing"

# (current room status, requested) -> job side effect
_EFFECTS: dict[tuple[str, str], str] = {
    (AVAILABLE, DEPOSITED): CONFIRM_DEPOSIT,
    (DEPOSITED, DEPOSITED): REOPEN_DEPOSIT,
    (AVAILABLE, RENTED): ACTIVATE_RENT,
    (AVAILABLE, MONTHLY_PAYMENT): CONFIRM_MONTHLY,
    (DEPOSITED, MONTHLY_PAYMENT): CONFIRM_MONTHLY,
    (RENTED, MONTHLY_PAYMENT): CONFIRM_MONTHLY,
    (RENTED, ROOMED_PAYMENT): START_MONTHLY_BILLING,
}

# effects that cannot run without a job on the room
NEEDS_JOB = {CONFIRM_MONTHLY, START_MONTHLY_BILLING}


@dataclass(frozen=True)
class StatusPlan:
    final_status: str
    effect: Optional[str]


def plan_status_change(current: str, requested: str) -> StatusPlan:
    """Resolve an admin status override into the stored room status and the job side effect."""
    req = (requested or "").strip()
    if req not in REQUESTABLE:
        raise BusinessRuleError("Trạng thái phòng không hợp lệ")

    if req == ROOMED_PAYMENT and current != RENTED:
        raise BusinessRuleError("Phòng chưa được thuê")

    final = RENTED if req in (MONTHLY_PAYMENT, ROOMED_PAYMENT) else req
    return StatusPlan(final_status=final, effect=_EFFECTS.get((current, req)))
