# backend/app/cli/seed_demo.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db import SessionLocal
from app.models import Banking, MotelRoom, User, ROLE_HOST, ROLE_MASTER
from app.services.accounts import create_customer, find_user_by_email
from app.services.inventory import create_floor
from app.services.rooms import create_room


@dataclass(frozen=True)
class SeedResult:
    master_email: str
    host_email: str
    motel_id: Optional[int]
    room_count: int


def _get_or_create_user(db: Session, *, email: str, phone: str, first: str, last: str, roles: str, password: str) -> User:
    row = find_user_by_email(db, email)
    if row:
        return row
    return create_customer(
        db,
        first_name=first,
        last_name=last,
        email=email,
        password=password,
        phone=phone,
        roles=roles,
    )


def _get_or_create_bank(db: Session, user: User) -> Banking:
    row = db.scalar(select(Banking).where(Banking.user_id == user.id))
    if row:
        return row
    row = Banking(
        user_id=user.id,
        bank_name="Vietcombank",
        account_number="0011000000001",
        account_holder=user.full_name.upper(),
        created_at=datetime.utcnow(),
    )
    db.add(row)
    db.flush()
    return row


def seed_demo(
    *,
    host_email: str = "host@homekey.local",
    master_email: str = "admin@homekey.local",
    password: str = "123456",
    motel_name: str = "HomeKey Demo",
    floors: int = 2,
    rooms_per_floor: int = 4,
) -> SeedResult:
    """Idempotent demo data: a master, a host with one bank account, one motel with rooms."""
    db = SessionLocal()
    try:
        _get_or_create_user(
            db, email=master_email, phone="0900000001", first="Admin", last="HomeKey", roles=ROLE_MASTER, password=password
        )
        host = _get_or_create_user(
            db, email=host_email, phone="0900000002", first="Chủ", last="Nhà", roles=ROLE_HOST, password=password
        )
        _get_or_create_bank(db, host)

        motel = db.scalar(select(MotelRoom).where(MotelRoom.owner_id == host.id, MotelRoom.name == motel_name))
        room_count = 0
        if motel is None:
            motel = MotelRoom(
                owner_id=host.id,
                name=motel_name,
                address="1 Võ Văn Ngân, Thủ Đức, TP.HCM",
                created_at=datetime.utcnow(),
            )
            db.add(motel)
            db.flush()

            for f in range(1, floors + 1):
                floor = create_floor(db, motel, f"Tầng {f}")
                for r in range(1, rooms_per_floor + 1):
                    create_room(
                        db,
                        floor_id=floor.id,
                        data={
                            "name": f"P{f}{r:02d}",
                            "price": 3_000_000,
                            "deposit_price": 3_000_000,
                            "electricity_price": 3_500,
                            "water_price": 100_000,
                            "wifi_price": 50_000,
                            "vehicle_price": 100_000,
                            "garbage_price": 30_000,
                            "acreage": 20,
                            "minimum_months": 1,
                        },
                    )
                    room_count += 1
        db.commit()
        return SeedResult(master_email=master_email, host_email=host_email, motel_id=motel.id, room_count=room_count)
    finally:
        db.close()
