# backend/app/services/bills.py
from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..domain.clock import local_today, next_month_start
from ..models import Banking, Bill, Job, Order, Room, Transaction, User, ORDER_MONTHLY
from .inventory import room_floor_motel

NO_BANK_ACCOUNT = "Chưa thêm tài khoản"


def _item(expense: str, quantity: float, unit_price: float, total: float) -> dict[str, Any]:
    """`type` holds the billed quantity: kWh, people, vehicles, or days stayed for rent."""
    return {
        "expense": expense,
        "type": _quantity(quantity),
        "unit_price": float(unit_price or 0.0),
        "total": float(total or 0.0),
    }


def _quantity(v: Any) -> float | int:
    v = float(v or 0.0)
    return int(v) if v.is_integer() else v


def monthly_line_items(order: Order, room: Room) -> dict[str, Any]:
    return {
        "electricity": _item("Chi Phí Điện", order.electric_number, room.electricity_price, order.electric_price),
        "garbage": _item("Chi Dịch Vụ", 1, room.garbage_price, order.service_price),
        "water": _item("Chi Phí Nước", room.person, room.water_price, order.water_price),
        "vehicle": _item("Chi Phí Xe", room.vehicle, room.vehicle_price, order.vehicle_price),
        "wifi": _item("Chi Phí Wifi", room.person, room.wifi_price, order.wifi_price),
        "other": _item("Chi Phí Khác", 1, 0.0, 0.0),
        "room": _item("Chi Phí Phòng", order.number_day_stay, room.price, order.room_price),
    }


def create_bill(
    db: Session,
    *,
    order: Order,
    transaction: Optional[Transaction] = None,
    bank: Optional[Banking] = None,
    today: Optional[date] = None,
) -> Bill:
    """
    Freeze the invoice for a paid order.

    Names, phones and addresses are copied so the bill stays valid after the
    tenant, room or motel is edited.
    """
    job = db.get(Job, order.job_id)
    room = db.get(Room, job.room_id)
    _, motel = room_floor_motel(db, room)
    user = db.get(User, order.user_id)
    owner = db.get(User, motel.owner_id) if motel else None

    if bank is None and transaction is not None and transaction.banking_id:
        bank = db.get(Banking, transaction.banking_id)

    if order.type == ORDER_MONTHLY and order.end_time is not None:
        date_bill = next_month_start(order.end_time)
        line_items = monthly_line_items(order, room)
    else:
        date_bill = today or local_today()
        line_items = {}

    amount = round(float(order.amount or 0.0), 2)
    row = Bill(
        order_id=order.id,
        user_id=order.user_id,
        motel_id=motel.id,
        room_id=room.id,
        id_bill=order.key_order,
        date_bill=date_bill,
        type=order.type,
        description=order.description,
        name_motel=motel.name if motel else "",
        address_motel=motel.address if motel else "",
        name_room=room.name,
        name_user=user.full_name if user else "",
        phone_user=(user.phone_number_full or "") if user else "",
        address_user=(user.address or "") if user else "",
        email_user=(user.email or "") if user else "",
        name_owner=owner.full_name if owner else "",
        email_owner=(owner.email or "") if owner else "",
        phone_owner=(owner.phone_number_full or "") if owner else "",
        address_owner=(owner.address or "") if owner else "",
        name_bank_owner=bank.bank_name if bank else NO_BANK_ACCOUNT,
        number_bank_owner=bank.account_number if bank else NO_BANK_ACCOUNT,
        name_owner_bank_owner=bank.account_holder if bank else NO_BANK_ACCOUNT,
        total_all=amount,
        total_and_tax_all=amount,
        total_tax_all=0.0,
        type_tax_all=0.0,
        start_time=order.start_time,
        end_time=order.end_time,
        line_items_json=json.dumps(line_items, ensure_ascii=False) if line_items else None,
        created_at=datetime.utcnow(),
    )
    db.add(row)
    db.flush()
    return row


def bills_for_order(db: Session, order_id: int) -> list[Bill]:
    return list(db.scalars(select(Bill).where(Bill.order_id == order_id)).all())
