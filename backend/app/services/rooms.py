# backend/app/services/rooms.py
from __future__ import annotations

import json
import logging
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ..domain import room_status as rs
from ..domain.billing import prorated_rent
from ..domain.clock import end_of_day, fmt_month, local_today, month_end
from ..domain.errors import BusinessRuleError
from ..domain.job_status import MONTHLY_PAYMENT_COMPLETED, PENDING_ACTIVATED, PENDING_DEPOSIT_PAYMENT, PENDING_MONTHLY_PAYMENT
from ..models import (
    EnergyReading,
    Floor,
    Job,
    MotelRoom,
    Order,
    Room,
    ORDER_MONTHLY,
    ROOM_AVAILABLE,
    ROOM_DEPOSITED,
    ROOM_RENTED,
)
from .contracts import pay_order_cash
from .inventory import has_waiting_deposit, open_job_for_room, refresh_counts, room_floor_motel, set_room_status
from .notifications import notify
from .orders import create_order
from .spreadsheets import Column, write_workbook

log = logging.getLogger("homekey.rooms")

EDITABLE_FIELDS = [
    "name",
    "price",
    "deposit_price",
    "electricity_price",
    "water_price",
    "wifi_price",
    "vehicle_price",
    "garbage_price",
    "acreage",
    "minimum_months",
    "id_electric_meter",
    "room_password",
    "description",
    "available_date",
    "unavailable_date",
]

UTILITY_FIELDS = [
    "price",
    "deposit_price",
    "electricity_price",
    "water_price",
    "wifi_price",
    "vehicle_price",
    "garbage_price",
    "person",
    "vehicle",
    "room_password",
    "description",
]

AVAILABLE_EXPORT_COLUMNS = [
    Column("TÊN PHÒNG", "name", 15),
    Column("ID PHÒNG", "id", 15),
    Column("SỐ THÁNG THUÊ TỐI THIỂU", "minimum_months", 45),
    Column("TẦNG", "floor_name", 15),
]


def _utilities_json(v: Any) -> Optional[str]:
    if v is None:
        return None
    if isinstance(v, str):
        items = [x.strip() for x in v.split(",") if x.strip()]
    else:
        items = [str(x).strip() for x in v if str(x).strip()]
    return json.dumps(items, ensure_ascii=False)


def _apply(room: Room, data: dict[str, Any], fields: list[str]) -> None:
    for k in fields:
        if k in data and data[k] is not None:
            setattr(room, k, data[k])
    if "utilities" in data and data["utilities"] is not None:
        room.utilities_json = _utilities_json(data["utilities"])


def create_room(db: Session, *, floor_id: int, data: dict[str, Any]) -> Room:
    floor = db.get(Floor, floor_id)
    if floor is None:
        raise BusinessRuleError("floor.not.exist")

    n = len(db.scalars(select(Room.id).where(Room.floor_id == floor.id)).all())
    room = Room(
        floor_id=floor.id,
        key=f"{floor.key}-R{n + 1}",
        name=str(data.get("name") or f"R{n + 1}"),
        status=data.get("status") or ROOM_AVAILABLE,
        is_completed=True,
        created_at=datetime.utcnow(),
    )
    if room.status not in (ROOM_AVAILABLE, ROOM_DEPOSITED, ROOM_RENTED):
        raise BusinessRuleError("Trạng thái phòng không hợp lệ")
    _apply(room, data, EDITABLE_FIELDS + ["person", "vehicle"])
    db.add(room)
    db.flush()

    refresh_counts(db, floor)
    log.info("room.created", extra={"room_id": room.id, "floor_id": floor.id})
    return room


def get_room_detail(db: Session, room_id: int) -> dict[str, Any]:
    room = db.get(Room, room_id)
    if room is None:
        raise BusinessRuleError("Phòng không tồn tại", status_code=404)
    floor, motel = room_floor_motel(db, room)
    return {
        "room": room,
        "floor_id": floor.id if floor else None,
        "motel_id": motel.id if motel else None,
        "motel": motel,
    }


def edit_room(db: Session, room_id: int, data: dict[str, Any]) -> Room:
    room = db.get(Room, room_id)
    if room is None:
        raise BusinessRuleError("Phòng không tồn tại", status_code=404)
    _apply(room, data, EDITABLE_FIELDS)
    room.is_completed = True
    db.add(room)

    floor = db.get(Floor, room.floor_id)
    if floor is not None:
        refresh_counts(db, floor)
    return room


def update_room_utilities(db: Session, room_id: int, data: dict[str, Any]) -> Room:
    room = db.get(Room, room_id)
    if room is None:
        raise BusinessRuleError("Phòng không tồn tại", status_code=404)
    _apply(room, data, UTILITY_FIELDS)
    db.add(room)
    db.flush()
    return room


def delete_room(db: Session, room_id: int) -> None:
    room = db.get(Room, room_id)
    if room is None:
        raise BusinessRuleError("room.not.exist")
    if db.scalar(select(Job.id).where(Job.room_id == room.id)) is not None:
        raise BusinessRuleError("room.is.rented")

    floor = db.get(Floor, room.floor_id)
    db.execute(delete(EnergyReading).where(EnergyReading.room_id == room.id))
    db.delete(room)
    db.flush()
    if floor is not None:
        refresh_counts(db, floor)
    log.info("room.deleted", extra={"room_id": room_id})


# -----------------------------
# Admin status override
# -----------------------------
def _settle_current_order(db: Session, job: Job, today: date) -> None:
    if not job.current_order_id:
        return
    order = db.get(Order, job.current_order_id)
    if order is not None and not order.is_completed:
        # same follow-ups as a normal payment (activation deadline, first-month billing)
        pay_order_cash(db, order, today=today)


def _start_monthly_billing(db: Session, job: Job, room: Room, today: date) -> Order:
    _settle_current_order(db, job, today)
    job.status = PENDING_MONTHLY_PAYMENT

    ci = job.check_in_date
    notify(
        db,
        user_id=job.user_id,
        title="Thông báo đóng tiền phòng",
        content="Vui lòng thanh toán tiền phòng trong vòng 5 ngày.",
        tag="Order",
        content_tag="need-to-payment",
        path=f"job-detail/{job.id}/{room.id}",
    )
    order = create_order(
        db,
        job=job,
        type=ORDER_MONTHLY,
        amount=prorated_rent(room.price, ci),
        description=f"Tiền phòng tháng {fmt_month(ci)}",
        expire_time=end_of_day(month_end(ci)).replace(tzinfo=None),
        start_time=ci,
        end_time=month_end(ci),
    )
    job.current_order_id = order.id
    return order


def edit_room_status(db: Session, room_id: int, requested: str, *, today: Optional[date] = None) -> Room:
    """
    Manual status override from the admin screen.

    Besides the room status it settles whatever the room's contract was
    waiting for (deposit, check-in, monthly payment).
    """
    today = today or local_today()
    room = db.get(Room, room_id)
    if room is None:
        raise BusinessRuleError("Phòng không tồn tại", status_code=404)

    plan = rs.plan_status_change(room.status, requested)
    job = open_job_for_room(db, room.id)
    if job is None and plan.effect in rs.NEEDS_JOB:
        raise BusinessRuleError("Phòng chưa có hợp đồng")

    if job is not None:
        if plan.effect == rs.CONFIRM_DEPOSIT:
            _settle_current_order(db, job, today)
            job.status = PENDING_ACTIVATED
            job.is_completed = True
        elif plan.effect == rs.REOPEN_DEPOSIT:
            job.status = PENDING_DEPOSIT_PAYMENT
            job.is_completed = False
        elif plan.effect == rs.ACTIVATE_RENT:
            job.is_completed = True
            job.is_actived = True
            job.room_password = room.room_password
            job.status = MONTHLY_PAYMENT_COMPLETED
        elif plan.effect == rs.CONFIRM_MONTHLY:
            _settle_current_order(db, job, today)
            job.status = MONTHLY_PAYMENT_COMPLETED
        elif plan.effect == rs.START_MONTHLY_BILLING:
            _start_monthly_billing(db, job, room, today)
        db.add(job)

    set_room_status(db, room, plan.final_status, rented_by=job.user_id if job else None)
    log.info("room.status_override", extra={"room_id": room.id, "requested": requested, "effect": plan.effect})
    return room


# -----------------------------
# Queries / export
# -----------------------------
def available_rooms_of_motel(db: Session, room_id: int) -> tuple[MotelRoom, list[dict[str, Any]]]:
    """Rooms of the motel owning `room_id` that can still be deposited."""
    room = db.get(Room, room_id)
    if room is None:
        raise BusinessRuleError("Phòng không tồn tại", status_code=404)
    floor = db.get(Floor, room.floor_id)
    if floor is None:
        raise BusinessRuleError("Tầng của phòng không tồn tại")
    motel = db.get(MotelRoom, floor.motel_id)
    if motel is None:
        raise BusinessRuleError("Tòa nhà của phòng không tồn tại")

    floors = list(db.scalars(select(Floor).where(Floor.motel_id == motel.id).order_by(Floor.id)).all())
    if not floors:
        raise BusinessRuleError("Tòa nhà chưa có tầng nào")

    out: list[dict[str, Any]] = []
    for f in floors:
        rooms = db.scalars(
            select(Room).where(Room.floor_id == f.id, Room.status == ROOM_AVAILABLE).order_by(Room.id)
        ).all()
        for r in rooms:
            if has_waiting_deposit(db, r.id):
                continue
            out.append({"name": r.name, "id": r.id, "minimum_months": r.minimum_months, "floor_name": f.name})
    return motel, out


def available_rooms_workbook(db: Session, room_id: int) -> tuple[str, bytes]:
    motel, rows = available_rooms_of_motel(db, room_id)
    return f"{motel.name} - Rooms - available.xlsx", write_workbook("Rooms", AVAILABLE_EXPORT_COLUMNS, rows)


def list_rented_jobs(db: Session, *, owner_id: Optional[int]) -> list[dict[str, Any]]:
    """Open contracts on deposited/rented rooms; all motels when owner_id is None."""
    q = (
        select(Job, Room, MotelRoom)
        .join(Room, Room.id == Job.room_id)
        .join(Floor, Floor.id == Room.floor_id)
        .join(MotelRoom, MotelRoom.id == Floor.motel_id)
        .where(Room.status.in_([ROOM_DEPOSITED, ROOM_RENTED]), Job.is_deleted.is_(False), Room.rented_by == Job.user_id)
        .order_by(MotelRoom.id, Room.id, Job.id.desc())
    )
    if owner_id is not None:
        q = q.where(MotelRoom.owner_id == owner_id)

    out: list[dict[str, Any]] = []
    seen: set[int] = set()
    for job, room, motel in db.execute(q).all():
        if room.id in seen:
            continue
        seen.add(room.id)
        out.append({"job": job, "room": room, "motel": motel})
    return out
