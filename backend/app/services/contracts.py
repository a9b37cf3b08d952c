# backend/app/services/contracts.py
from __future__ import annotations

import json
import logging
import re
from datetime import date, datetime, timedelta
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import settings
from ..domain.billing import contract_ends_this_month, deposit_breakdown, months_between
from ..domain.clock import (
    DATE_FMT,
    end_of_day,
    fmt_date,
    fmt_month,
    local_now,
    local_today,
    month_start,
    next_month_start,
    start_of_day,
)
from ..domain.errors import BusinessRuleError
from ..domain.job_status import (
    CANCELED,
    PENDING_ACTIVATED,
    PENDING_AFTER_CHECK_IN_PAYMENT,
    PENDING_DEPOSIT_PAYMENT,
    can_transition,
    next_status,
)
from ..models import (
    Banking,
    Floor,
    Job,
    MotelRoom,
    Order,
    Room,
    Transaction,
    User,
    ORDER_AFTER_CHECK_IN,
    ORDER_DEPOSIT,
    ORDER_MONTHLY,
    ROOM_AVAILABLE,
    ROOM_DEPOSITED,
    ROOM_RENTED,
    TXN_CANCEL,
    TXN_WAITING,
)
from .accounts import resolve_tenant
from .billing_cycle import create_history_orders
from .inventory import has_waiting_deposit, room_floor_motel, set_room_status
from .notifications import notify
from .orders import confirm_transaction, create_order, create_paid_order, record_cash_payment
from .scheduler import (
    CHECK_IDENTITY_IMAGES,
    CHECK_JOB_STATUS,
    CREATE_FIRST_MONTH_ORDER,
    CREATE_HISTORY_ORDERS,
    CREATE_ORDER_FOR_NEXT_MONTH,
    schedule,
)

log = logging.getLogger("homekey.contracts")

_DATE_RE = re.compile(r"^\d{2}/\d{2}/\d{4}$")

MSG_BAD_DATE = "Định dạng ngày tháng không hợp lệ"
MSG_DEPOSIT_IN_PAST = "Ngày ký hợp đồng phải bắt đầu từ ngày hiện tại"
MSG_DEPOSIT_TOO_FAR = "Ngày ký hợp đồng không được vượt quá 5 ngày tính từ ngày hiện tại"
MSG_RENT_NOT_PAST = "Vui lòng nhập thời gian bắt đầu thuê nhỏ hơn thời gian hiện tại"
MSG_RENT_ENDS_THIS_MONTH = (
    "Vui lòng nhập lại số tháng thuê và ngày bắt đầu thuê hợp lệ. "
    "Với thời gian nhập hiện tại, hợp đồng sẽ hết hạn trong tháng này."
)


# -----------------------------
# Input helpers
# -----------------------------
def parse_check_in(raw: Any) -> date:
    """Strict DD/MM/YYYY (date objects pass through)."""
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    s = str(raw or "").strip()
    if not _DATE_RE.match(s):
        raise BusinessRuleError(MSG_BAD_DATE)
    try:
        return datetime.strptime(s, DATE_FMT).date()
    except ValueError:
        raise BusinessRuleError(MSG_BAD_DATE)


def deposit_window_error(check_in: date, today: date) -> Optional[str]:
    if check_in < today:
        return MSG_DEPOSIT_IN_PAST
    if check_in > today + timedelta(days=settings.checkin_window_days):
        return MSG_DEPOSIT_TOO_FAR
    return None


def rent_window_error(check_in: date, rental_period: int, today: date) -> Optional[str]:
    if check_in >= today:
        return MSG_RENT_NOT_PAST
    if contract_ends_this_month(check_in, rental_period, today):
        return MSG_RENT_ENDS_THIS_MONTH
    return None


def ensure_room_bookable(db: Session, room_id: Any) -> tuple[Room, Floor, MotelRoom]:
    try:
        room = db.get(Room, int(room_id))
    except (TypeError, ValueError):
        room = None
    if room is None:
        raise BusinessRuleError("Phòng không tồn tại")
    if room.status != ROOM_AVAILABLE:
        raise BusinessRuleError("Phòng đã được đặt, vui lòng chọn phòng khác")
    if has_waiting_deposit(db, room.id):
        raise BusinessRuleError("Đã có giao dịch cọc cho phòng này, vui lòng kiểm tra và phê duyệt")

    floor, motel = room_floor_motel(db, room)
    if floor is None:
        raise BusinessRuleError("Tầng không hợp lệ")
    if motel is None:
        raise BusinessRuleError("Tòa nhà không hợp lệ")
    return room, floor, motel


def get_bank(db: Session, bank_id: Any) -> Optional[Banking]:
    if bank_id in (None, ""):
        return None
    bank = db.get(Banking, int(bank_id))
    if bank is None:
        raise BusinessRuleError("Tài khoản ngân hàng không tồn tại")
    return bank


def _open_job(db: Session, *, user: User, room: Room, check_in: date, rental_period: int) -> Job:
    money = deposit_breakdown(room.price, room.deposit_price)
    job = Job(
        user_id=user.id,
        room_id=room.id,
        check_in_date=check_in,
        rental_period=int(rental_period),
        price=money.price,
        bail=money.bail,
        deposit=money.deposit,
        after_check_in_cost=money.after_check_in_cost,
        total=money.total,
        status=PENDING_DEPOSIT_PAYMENT,
        full_name=user.full_name,
        phone_number=user.phone_number_full,
        created_at=datetime.utcnow(),
    )
    db.add(job)
    db.flush()
    return job


# -----------------------------
# Lifecycle steps
# -----------------------------
def _deposit_confirmed(db: Session, job: Job, room: Room, order: Order) -> None:
    job.status = next_status(job.status, "deposit_paid")
    job.is_completed = True
    job.current_order_id = order.id
    db.add(job)
    set_room_status(db, room, ROOM_DEPOSITED, rented_by=job.user_id)

    deadline = job.check_in_date + timedelta(days=settings.activation_window_days)
    notify(
        db,
        user_id=job.user_id,
        title="Thông báo kích hoạt hợp đồng",
        content=f"Vui lòng kích hoạt hợp đồng cho phòng {room.name} trước ngày {fmt_date(deadline)}.",
        tag="Job",
        content_tag="need-to-active",
        path=f"job-detail/{job.id}/{room.id}",
    )
    schedule(CHECK_JOB_STATUS, eta=end_of_day(deadline), job_id=job.id)


def _rent_started(db: Session, job: Job, room: Room, order: Order) -> None:
    job.status = next_status(job.status, "after_check_in_paid")
    job.is_actived = True
    job.is_completed = True
    job.room_password = room.room_password
    job.current_order_id = order.id
    db.add(job)
    set_room_status(db, room, ROOM_RENTED, rented_by=job.user_id)


def settle_order(db: Session, order: Order, *, today: Optional[date] = None) -> Job:
    """Advance the contract once `order` has been paid."""
    job = db.get(Job, order.job_id)
    room = db.get(Room, job.room_id)

    if order.type == ORDER_DEPOSIT and job.status == PENDING_DEPOSIT_PAYMENT:
        _deposit_confirmed(db, job, room, order)
    elif order.type == ORDER_AFTER_CHECK_IN and job.status == PENDING_AFTER_CHECK_IN_PAYMENT:
        _rent_started(db, job, room, order)
        # bills the check-in month; runs immediately when that month is already over
        schedule(CREATE_FIRST_MONTH_ORDER, eta=start_of_day(next_month_start(job.check_in_date)), job_id=job.id)
    elif order.type == ORDER_MONTHLY and can_transition(job.status, "monthly_paid"):
        job.status = next_status(job.status, "monthly_paid")
        db.add(job)

    db.flush()
    log.info("order.settled", extra={"order_id": order.id, "job_id": job.id, "status": job.status})
    return job


def pay_order_cash(db: Session, order: Order, *, bank_id: Any = None, today: Optional[date] = None) -> Job:
    record_cash_payment(db, order, bank=get_bank(db, bank_id), today=today)
    return settle_order(db, order, today=today)


def approve_transaction(db: Session, txn: Transaction, *, today: Optional[date] = None) -> Job:
    order = confirm_transaction(db, txn, today=today)
    return settle_order(db, order, today=today)


# -----------------------------
# Admin quick flows
# -----------------------------
def quick_deposit(
    db: Session,
    *,
    phone: Any,
    check_in: Any,
    room_id: Any,
    rental_period: int = 1,
    bank_id: Any = None,
    key_payment: Optional[str] = None,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    email: Optional[str] = None,
    password: Optional[str] = None,
    confirm_password: Optional[str] = None,
    today: Optional[date] = None,
) -> Job:
    """
    Admin records a cash deposit for a walk-in tenant.

    The deposit is taken as paid, so the room goes straight to deposited and
    the tenant gets `activation_window_days` after check-in to activate.
    """
    today = today or local_today()
    ci = parse_check_in(check_in)
    err = deposit_window_error(ci, today)
    if err:
        raise BusinessRuleError(err)

    user = resolve_tenant(
        db,
        phone=phone,
        first_name=first_name,
        last_name=last_name,
        email=email,
        password=password,
        confirm_password=confirm_password,
    )
    room, _, _ = ensure_room_bookable(db, room_id)
    bank = get_bank(db, bank_id)

    job = _open_job(db, user=user, room=room, check_in=ci, rental_period=rental_period or 1)
    order = create_paid_order(
        db,
        job=job,
        type=ORDER_DEPOSIT,
        amount=job.deposit,
        description=f"Tiền cọc phòng tháng {fmt_month(ci)}",
        expire_time=end_of_day(ci + timedelta(days=settings.deposit_order_expire_days)).replace(tzinfo=None),
        bank=bank,
        key_payment=key_payment,
        today=today,
    )
    _deposit_confirmed(db, job, room, order)

    log.info("job.quick_deposit", extra={"job_id": job.id, "room_id": room.id, "user_id": user.id})
    return job


def quick_rent(
    db: Session,
    *,
    phone: Any,
    check_in: Any,
    room_id: Any,
    rental_period: int = 1,
    bank_id: Any = None,
    key_payment: Optional[str] = None,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    email: Optional[str] = None,
    password: Optional[str] = None,
    confirm_password: Optional[str] = None,
    today: Optional[date] = None,
) -> Job:
    """
    Admin registers a tenant who already lives in the room.

    Deposit, check-in payment and every past month are recorded as paid in
    cash; billing then continues from the current month.
    """
    today = today or local_today()
    rental_period = int(rental_period or 1)
    ci = parse_check_in(check_in)
    err = rent_window_error(ci, rental_period, today)
    if err:
        raise BusinessRuleError(err)

    user = resolve_tenant(
        db,
        phone=phone,
        first_name=first_name,
        last_name=last_name,
        email=email,
        password=password,
        confirm_password=confirm_password,
    )
    room, _, _ = ensure_room_bookable(db, room_id)
    bank = get_bank(db, bank_id)

    job = _open_job(db, user=user, room=room, check_in=ci, rental_period=rental_period)
    deposit_order = create_paid_order(
        db,
        job=job,
        type=ORDER_DEPOSIT,
        amount=job.deposit,
        description=f"Tiền cọc phòng tháng {fmt_month(ci)}",
        expire_time=end_of_day(ci + timedelta(days=settings.deposit_order_expire_days)).replace(tzinfo=None),
        bank=bank,
        key_payment=key_payment,
        today=today,
    )
    job.status = next_status(job.status, "deposit_paid")
    job.status = next_status(job.status, "activate")
    job.current_order_id = deposit_order.id

    after_order = create_paid_order(
        db,
        job=job,
        type=ORDER_AFTER_CHECK_IN,
        amount=job.after_check_in_cost,
        description=f"Tiền thanh toán khi nhận phòng tháng {fmt_month(ci)}",
        expire_time=(local_now() + timedelta(days=settings.after_checkin_order_expire_days)).replace(tzinfo=None),
        bank=bank,
        today=today,
    )
    _rent_started(db, job, room, after_order)

    past_months = months_between(month_start(today), month_start(ci))
    next_run = start_of_day(next_month_start(today))
    if past_months >= 1:
        # short histories are built inline; the threshold counts from the check-in day itself
        if months_between(today, ci) < settings.quick_rent_inline_history_months:
            create_history_orders(db, job, today=today, bank=bank)
        else:
            schedule(CREATE_HISTORY_ORDERS, job_id=job.id, bank_id=bank.id if bank else None)
        schedule(CREATE_ORDER_FOR_NEXT_MONTH, eta=next_run, job_id=job.id)
    else:
        schedule(CREATE_FIRST_MONTH_ORDER, eta=next_run, job_id=job.id)

    schedule(
        CHECK_IDENTITY_IMAGES,
        eta=local_now() + timedelta(days=settings.identity_check_delay_days),
        job_id=job.id,
    )

    log.info("job.quick_rent", extra={"job_id": job.id, "room_id": room.id, "user_id": user.id})
    return job


# -----------------------------
# Tenant self-service
# -----------------------------
def create_deposit_job(
    db: Session,
    *,
    user: User,
    room_id: Any,
    check_in: Any,
    rental_period: int,
    today: Optional[date] = None,
) -> Job:
    today = today or local_today()
    ci = parse_check_in(check_in)
    err = deposit_window_error(ci, today)
    if err:
        raise BusinessRuleError(err)
    if user.is_locked:
        raise BusinessRuleError("Tài khoản của khách hàng đã bị khóa tạm thời nên không thể tiến hành đặt cọc")

    room, _, _ = ensure_room_bookable(db, room_id)
    if int(rental_period) < int(room.minimum_months or 1):
        raise BusinessRuleError("Số tháng thuê không được nhỏ hơn số tháng thuê tối thiểu của phòng")

    job = _open_job(db, user=user, room=room, check_in=ci, rental_period=rental_period)
    order = create_order(
        db,
        job=job,
        type=ORDER_DEPOSIT,
        amount=job.deposit,
        description=f"Tiền cọc phòng tháng {fmt_month(ci)}",
        expire_time=end_of_day(today + timedelta(days=settings.deposit_order_expire_days)).replace(tzinfo=None),
    )
    job.current_order_id = order.id
    db.add(job)
    db.flush()
    log.info("job.created", extra={"job_id": job.id, "room_id": room.id, "user_id": user.id})
    return job


def activate_job(db: Session, job: Job, *, today: Optional[date] = None) -> Order:
    today = today or local_today()
    if job.status != PENDING_ACTIVATED:
        raise BusinessRuleError("Hợp đồng không ở trạng thái chờ kích hoạt")
    if today < job.check_in_date:
        raise BusinessRuleError("Chưa đến ngày nhận phòng, chưa thể kích hoạt hợp đồng")

    job.status = next_status(job.status, "activate")
    order = create_order(
        db,
        job=job,
        type=ORDER_AFTER_CHECK_IN,
        amount=job.after_check_in_cost,
        description=f"Tiền thanh toán khi nhận phòng tháng {fmt_month(job.check_in_date)}",
        expire_time=end_of_day(today + timedelta(days=settings.after_checkin_order_expire_days)).replace(tzinfo=None),
    )
    job.current_order_id = order.id
    db.add(job)
    db.flush()
    return order


def set_identity_images(db: Session, job: Job, images: list[str]) -> Job:
    job.identity_images_json = json.dumps([str(x) for x in images if str(x).strip()])
    db.add(job)
    db.flush()
    return job


def cancel_job(db: Session, job: Job, *, event: str = "cancel") -> Job:
    """Cancel the contract, drop pending payments, and free the room it was holding."""
    job.status = next_status(job.status, event)
    job.is_actived = False
    db.add(job)

    order_ids = select(Order.id).where(Order.job_id == job.id)
    for txn in db.scalars(
        select(Transaction).where(Transaction.order_id.in_(order_ids), Transaction.status == TXN_WAITING)
    ).all():
        txn.status = TXN_CANCEL
        db.add(txn)

    room = db.get(Room, job.room_id)
    if room is not None and room.status != ROOM_AVAILABLE and room.rented_by == job.user_id:
        set_room_status(db, room, ROOM_AVAILABLE)

    notify(
        db,
        user_id=job.user_id,
        title="Thông báo hủy hợp đồng",
        content=f"Hợp đồng thuê phòng {room.name if room else ''} đã bị hủy.",
        tag="Job",
        content_tag="job-canceled",
        path=f"job-detail/{job.id}/{job.room_id}",
    )
    db.flush()
    log.info("job.canceled", extra={"job_id": job.id, "event": event})
    return job


# -----------------------------
# Scheduled checks
# -----------------------------
def check_job_status(db: Session, job_id: int) -> bool:
    """Runs at the activation deadline; cancels contracts nobody activated."""
    job = db.get(Job, job_id)
    if job is None or job.is_deleted or job.status != PENDING_ACTIVATED:
        return False
    cancel_job(db, job, event="activation_expired")
    return True


def check_identity_images(db: Session, job_id: int) -> bool:
    job = db.get(Job, job_id)
    if job is None or job.is_deleted or job.status == CANCELED or job.identity_images:
        return False

    room = db.get(Room, job.room_id)
    notify(
        db,
        user_id=job.user_id,
        title="Thông báo cập nhật giấy tờ",
        content=f"Vui lòng cập nhật ảnh CMND/CCCD cho hợp đồng thuê phòng {room.name if room else ''}.",
        tag="Job",
        content_tag="need-identity-images",
        path=f"job-detail/{job.id}/{job.room_id}",
    )
    _, motel = room_floor_motel(db, room) if room else (None, None)
    if motel is not None:
        notify(
            db,
            user_id=motel.owner_id,
            title="Hợp đồng chưa có giấy tờ tùy thân",
            content=f"Hợp đồng phòng {room.name} của {job.full_name} chưa có ảnh CMND/CCCD.",
            tag="Job",
            content_tag="missing-identity-images",
        )
    return True
