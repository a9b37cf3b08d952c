# backend/app/services/inventory.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..domain.job_status import CANCELED
from ..models import (
    Floor,
    Job,
    MotelRoom,
    Room,
    Transaction,
    ORDER_DEPOSIT,
    ROOM_AVAILABLE,
    ROOM_DEPOSITED,
    ROOM_RENTED,
    TXN_WAITING,
)

log = logging.getLogger("homekey.inventory")


def room_floor_motel(db: Session, room: Room) -> tuple[Optional[Floor], Optional[MotelRoom]]:
    floor = db.get(Floor, room.floor_id)
    motel = db.get(MotelRoom, floor.motel_id) if floor else None
    return floor, motel


def _status_counts(db: Session, floor_id: int) -> dict[str, int]:
    rows = db.execute(
        select(Room.status, func.count(Room.id)).where(Room.floor_id == floor_id).group_by(Room.status)
    ).all()
    return {str(status): int(n) for status, n in rows}


def refresh_floor_counts(db: Session, floor: Floor) -> Floor:
    db.flush()
    counts = _status_counts(db, floor.id)
    floor.available_room = counts.get(ROOM_AVAILABLE, 0)
    floor.deposited_room = counts.get(ROOM_DEPOSITED, 0)
    floor.rented_room = counts.get(ROOM_RENTED, 0)
    floor.total_room = sum(counts.values())

    incomplete = db.scalar(
        select(func.count(Room.id)).where(Room.floor_id == floor.id, Room.is_completed.is_(False))
    )
    floor.is_completed = floor.total_room > 0 and int(incomplete or 0) == 0
    db.add(floor)
    return floor


def refresh_motel_counts(db: Session, motel: MotelRoom) -> MotelRoom:
    db.flush()
    floors = list(db.scalars(select(Floor).where(Floor.motel_id == motel.id)).all())
    motel.total_floor = len(floors)
    motel.total_room = sum(f.total_room for f in floors)
    motel.available_room = sum(f.available_room for f in floors)
    motel.deposited_room = sum(f.deposited_room for f in floors)
    motel.rented_room = sum(f.rented_room for f in floors)
    motel.is_completed = bool(floors) and all(f.is_completed for f in floors)
    db.add(motel)
    return motel


def refresh_counts(db: Session, floor: Floor) -> None:
    """Recompute floor counters from its rooms, then the motel totals from its floors."""
    refresh_floor_counts(db, floor)
    motel = db.get(MotelRoom, floor.motel_id)
    if motel is not None:
        refresh_motel_counts(db, motel)
    db.flush()


def set_room_status(db: Session, room: Room, status: str, *, rented_by: Optional[int] = None) -> Room:
    before = room.status
    room.status = status
    if status == ROOM_AVAILABLE:
        room.rented_by = None
    elif rented_by is not None:
        room.rented_by = rented_by
    db.add(room)

    floor = db.get(Floor, room.floor_id)
    if floor is not None:
        refresh_counts(db, floor)

    if before != status:
        log.info("room.status_changed", extra={"room_id": room.id, "from": before, "to": status})
    return room


def has_waiting_deposit(db: Session, room_id: int) -> bool:
    row = db.scalar(
        select(Transaction.id).where(
            Transaction.room_id == room_id,
            Transaction.type == ORDER_DEPOSIT,
            Transaction.status == TXN_WAITING,
            Transaction.is_deleted.is_(False),
        )
    )
    return row is not None


def open_job_for_room(db: Session, room_id: int) -> Optional[Job]:
    return db.scalar(
        select(Job)
        .where(Job.room_id == room_id, Job.is_deleted.is_(False), Job.status != CANCELED)
        .order_by(Job.id.desc())
    )


def create_floor(db: Session, motel: MotelRoom, name: str) -> Floor:
    n = int(db.scalar(select(func.count(Floor.id)).where(Floor.motel_id == motel.id)) or 0)
    floor = Floor(motel_id=motel.id, name=name, key=f"M{motel.id}-F{n + 1}", created_at=datetime.utcnow())
    db.add(floor)
    db.flush()
    refresh_motel_counts(db, motel)
    return floor
