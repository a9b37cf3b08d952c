# backend/app/services/ownership.py
from __future__ import annotations

from typing import Optional

from fastapi import HTTPException
from sqlalchemy import or_, select, true
from sqlalchemy.orm import Session

from ..auth import Principal
from ..models import Bill, Floor, Job, MotelRoom, Order, Room, Transaction, User


def _check_owner(motel: MotelRoom, p: Optional[Principal]) -> None:
    # p=None means an internal caller (worker, service) with full access
    if p is None or p.is_master:
        return
    if int(motel.owner_id) != int(p.user_id):
        raise HTTPException(status_code=404, detail="motel not found")


def must_get_motel(db: Session, *, motel_id: int, p: Optional[Principal] = None) -> MotelRoom:
    row = db.scalar(select(MotelRoom).where(MotelRoom.id == motel_id))
    if not row:
        raise HTTPException(status_code=404, detail="motel not found")
    _check_owner(row, p)
    return row


def must_get_floor(db: Session, *, floor_id: int, p: Optional[Principal] = None) -> Floor:
    row = db.scalar(select(Floor).where(Floor.id == floor_id))
    if not row:
        raise HTTPException(status_code=404, detail="floor not found")
    if p is not None:
        must_get_motel(db, motel_id=row.motel_id, p=p)
    return row


def must_get_room(db: Session, *, room_id: int, p: Optional[Principal] = None) -> Room:
    row = db.scalar(select(Room).where(Room.id == room_id))
    if not row:
        raise HTTPException(status_code=404, detail="room not found")
    if p is not None:
        must_get_floor(db, floor_id=row.floor_id, p=p)
    return row


def must_get_user(db: Session, *, user_id: int) -> User:
    row = db.scalar(select(User).where(User.id == user_id, User.is_deleted.is_(False)))
    if not row:
        raise HTTPException(status_code=404, detail="user not found")
    return row


def _can_see_room(db: Session, room_id: int, p: Principal) -> bool:
    if p.is_master:
        return True
    if not p.is_host:
        return False
    room = db.get(Room, room_id)
    floor = db.get(Floor, room.floor_id) if room else None
    motel = db.get(MotelRoom, floor.motel_id) if floor else None
    return motel is not None and int(motel.owner_id) == int(p.user_id)


def must_get_job(db: Session, *, job_id: int, p: Optional[Principal] = None) -> Job:
    row = db.scalar(select(Job).where(Job.id == job_id, Job.is_deleted.is_(False)))
    if not row:
        raise HTTPException(status_code=404, detail="job not found")
    if p is not None and int(row.user_id) != int(p.user_id) and not _can_see_room(db, row.room_id, p):
        raise HTTPException(status_code=404, detail="job not found")
    return row


def must_get_order(db: Session, *, order_id: int, p: Optional[Principal] = None) -> Order:
    row = db.scalar(select(Order).where(Order.id == order_id))
    if not row:
        raise HTTPException(status_code=404, detail="order not found")
    if p is not None:
        must_get_job(db, job_id=row.job_id, p=p)
    return row


def must_get_transaction(db: Session, *, transaction_id: int, p: Optional[Principal] = None) -> Transaction:
    row = db.scalar(select(Transaction).where(Transaction.id == transaction_id, Transaction.is_deleted.is_(False)))
    if not row:
        raise HTTPException(status_code=404, detail="transaction not found")
    if p is not None and int(row.user_id) != int(p.user_id) and not _can_see_room(db, row.room_id, p):
        raise HTTPException(status_code=404, detail="transaction not found")
    return row


def must_get_bill(db: Session, *, bill_id: int, p: Optional[Principal] = None) -> Bill:
    row = db.scalar(select(Bill).where(Bill.id == bill_id))
    if not row:
        raise HTTPException(status_code=404, detail="bill not found")
    if p is not None and int(row.user_id) != int(p.user_id) and not _can_see_room(db, row.room_id, p):
        raise HTTPException(status_code=404, detail="bill not found")
    return row


def owned_room_ids(p: Principal):
    return (
        select(Room.id)
        .join(Floor, Floor.id == Room.floor_id)
        .join(MotelRoom, MotelRoom.id == Floor.motel_id)
        .where(MotelRoom.owner_id == p.user_id)
    )


def visible_to(model, p: Principal):
    """
    WHERE clause for list endpoints on rows carrying user_id and room_id.

    Masters see everything, hosts see their own rows plus those on their rooms,
    customers only their own.
    """
    if p.is_master:
        return true()
    if p.is_host:
        return or_(model.user_id == p.user_id, model.room_id.in_(owned_room_ids(p)))
    return model.user_id == p.user_id
