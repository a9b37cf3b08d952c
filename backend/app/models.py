# backend/app/models.py
from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base


def _loads_list(raw: Optional[str]) -> list[Any]:
    if not raw:
        return []
    try:
        v = json.loads(raw)
    except ValueError:
        return []
    return v if isinstance(v, list) else []


# -----------------------------
# Status vocabularies
# -----------------------------
ROOM_AVAILABLE = "available"
ROOM_DEPOSITED = "deposited"
ROOM_RENTED = "rented"
ROOM_STATUSES = (ROOM_AVAILABLE, ROOM_DEPOSITED, ROOM_RENTED)

ORDER_DEPOSIT = "deposit"
ORDER_AFTER_CHECK_IN = "afterCheckInCost"
ORDER_MONTHLY = "monthly"
ORDER_TYPES = (ORDER_DEPOSIT, ORDER_AFTER_CHECK_IN, ORDER_MONTHLY)

TXN_WAITING = "waiting"
TXN_SUCCESS = "success"
TXN_CANCEL = "cancel"

PAY_CASH = "cash"
PAY_BANKING = "banking"

ROLE_CUSTOMER = "customer"
ROLE_HOST = "host"
ROLE_MASTER = "master"


# -----------------------------
# Accounts
# -----------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    first_name: Mapped[str] = mapped_column(String(80), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(80), nullable=False, default="")
    email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True, index=True)

    phone_country_code: Mapped[str] = mapped_column(String(8), nullable=False, default="+84")
    phone_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True, index=True)
    phone_number_full: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    roles: Mapped[str] = mapped_column(String(80), nullable=False, default="customer")  # comma list
    address: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)

    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    @property
    def role_list(self) -> list[str]:
        return [r.strip() for r in (self.roles or "").split(",") if r.strip()]

    @property
    def full_name(self) -> str:
        return f"{self.last_name} {self.first_name}".strip()


class Banking(Base):
    __tablename__ = "bankings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    bank_name: Mapped[str] = mapped_column(String(160), nullable=False)
    account_number: Mapped[str] = mapped_column(String(60), nullable=False)
    account_holder: Mapped[str] = mapped_column(String(160), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


# -----------------------------
# Inventory: motel > floor > room
# -----------------------------
class MotelRoom(Base):
    __tablename__ = "motels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[str] = mapped_column(String(300), nullable=False, default="")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    total_floor: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_room: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    available_room: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    deposited_room: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rented_room: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class Floor(Base):
    __tablename__ = "floors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    motel_id: Mapped[int] = mapped_column(Integer, ForeignKey("motels.id"), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(80), nullable=False)
    key: Mapped[str] = mapped_column(String(40), nullable=False)

    total_room: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    available_room: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    deposited_room: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rented_room: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class Room(Base):
    __tablename__ = "rooms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    floor_id: Mapped[int] = mapped_column(Integer, ForeignKey("floors.id"), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(80), nullable=False)
    key: Mapped[str] = mapped_column(String(60), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ROOM_AVAILABLE, index=True)

    # pricing (VND)
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    deposit_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    electricity_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)  # per kWh
    water_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)  # per person
    wifi_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)  # per person
    vehicle_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)  # per vehicle
    garbage_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)  # flat service fee

    acreage: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    minimum_months: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    person: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    vehicle: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    id_electric_meter: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    room_password: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    utilities_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    available_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    unavailable_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    previous_electricity_number: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    current_electricity_number: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    previous_water_number: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    current_water_number: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    rented_by: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def utilities(self) -> list[str]:
        return [str(x) for x in _loads_list(self.utilities_json)]


class EnergyReading(Base):
    __tablename__ = "energy_readings"
    __table_args__ = (Index("ix_energy_readings_room_time", "room_id", "recorded_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    room_id: Mapped[int] = mapped_column(Integer, ForeignKey("rooms.id"), nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    kwh: Mapped[float] = mapped_column(Float, nullable=False)  # cumulative meter value


# -----------------------------
# Tenancy + billing
# -----------------------------
class Job(Base):
    __tablename__ = "jobs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    room_id: Mapped[int] = mapped_column(Integer, ForeignKey("rooms.id"), index=True, nullable=False)

    check_in_date: Mapped[date] = mapped_column(Date, nullable=False)
    rental_period: Mapped[int] = mapped_column(Integer, nullable=False, default=1)  # months

    price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    bail: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    deposit: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    after_check_in_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    status: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_actived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    full_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    phone_number: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    room_password: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    identity_images_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # plain id (no FK): orders already reference jobs
    current_order_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def identity_images(self) -> list[str]:
        return [str(x) for x in _loads_list(self.identity_images_json)]


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (Index("ix_orders_job_type_start", "job_id", "type", "start_time"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    job_id: Mapped[int] = mapped_column(Integer, ForeignKey("jobs.id"), index=True, nullable=False)

    key_order: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    description: Mapped[str] = mapped_column(String(300), nullable=False, default="")
    amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payment_method: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    expire_time: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # billing period (monthly orders)
    start_time: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_time: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    number_day_stay: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    electric_number: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    electric_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    water_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    service_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    vehicle_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    room_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    wifi_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    energy_detail_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    order_id: Mapped[int] = mapped_column(Integer, ForeignKey("orders.id"), index=True, nullable=False)
    motel_id: Mapped[int] = mapped_column(Integer, ForeignKey("motels.id"), index=True, nullable=False)
    room_id: Mapped[int] = mapped_column(Integer, ForeignKey("rooms.id"), index=True, nullable=False)
    banking_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("bankings.id"), nullable=True)

    key_payment: Mapped[str] = mapped_column(String(40), nullable=False)
    key_order: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str] = mapped_column(String(300), nullable=False, default="")
    amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default=TXN_WAITING, index=True)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False, default=PAY_CASH)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class Bill(Base):
    """Invoice snapshot: copies names/addresses so later edits never rewrite history."""

    __tablename__ = "bills"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(Integer, ForeignKey("orders.id"), index=True, nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    motel_id: Mapped[int] = mapped_column(Integer, ForeignKey("motels.id"), index=True, nullable=False)
    room_id: Mapped[int] = mapped_column(Integer, ForeignKey("rooms.id"), index=True, nullable=False)

    id_bill: Mapped[str] = mapped_column(String(20), nullable=False)
    date_bill: Mapped[date] = mapped_column(Date, nullable=False)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    description: Mapped[str] = mapped_column(String(300), nullable=False, default="")

    name_motel: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    address_motel: Mapped[str] = mapped_column(String(300), nullable=False, default="")
    name_room: Mapped[str] = mapped_column(String(80), nullable=False, default="")

    name_user: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    phone_user: Mapped[str] = mapped_column(String(30), nullable=False, default="")
    address_user: Mapped[str] = mapped_column(String(300), nullable=False, default="")
    email_user: Mapped[str] = mapped_column(String(200), nullable=False, default="")

    name_owner: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    email_owner: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    phone_owner: Mapped[str] = mapped_column(String(30), nullable=False, default="")
    address_owner: Mapped[str] = mapped_column(String(300), nullable=False, default="")

    name_bank_owner: Mapped[str] = mapped_column(String(160), nullable=False, default="")
    number_bank_owner: Mapped[str] = mapped_column(String(60), nullable=False, default="")
    name_owner_bank_owner: Mapped[str] = mapped_column(String(160), nullable=False, default="")

    total_all: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_and_tax_all: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_tax_all: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    type_tax_all: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    start_time: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_time: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    line_items_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    @property
    def line_items(self) -> dict[str, Any]:
        if not self.line_items_json:
            return {}
        try:
            v = json.loads(self.line_items_json)
        except ValueError:
            return {}
        return v if isinstance(v, dict) else {}


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(40), nullable=False, default="notification")
    tag: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    content_tag: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    url: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class AuditEvent(Base):
    __tablename__ = "audit_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    actor_user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)

    action: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(80), nullable=False)

    before_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    after_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
