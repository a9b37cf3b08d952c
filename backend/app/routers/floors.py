# backend/app/routers/floors.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth import require_host
from ..db import get_db
from ..domain.audit import emit_audit
from ..domain.errors import BusinessRuleError
from ..models import Floor, MotelRoom, Room
from ..schemas import FloorCreate, FloorDetailOut, FloorOut, RoomOut
from ..services.inventory import create_floor, refresh_motel_counts
from ..services.ownership import must_get_floor, must_get_motel

router = APIRouter(prefix="/floors", tags=["floors"])


@router.post("", response_model=FloorOut)
def add_floor(payload: FloorCreate, db: Session = Depends(get_db), p=Depends(require_host)):
    motel = must_get_motel(db, motel_id=payload.motel_id, p=p)
    row = create_floor(db, motel, payload.name)
    db.commit()
    db.refresh(row)

    emit_audit(
        db,
        actor_user_id=p.user_id,
        action="floor.create",
        entity_type="Floor",
        entity_id=row.id,
        before=None,
        after=row.model_dump(),
    )
    return row


@router.get("/{floor_id}", response_model=FloorDetailOut)
def get_floor(floor_id: int, db: Session = Depends(get_db), p=Depends(require_host)):
    row = must_get_floor(db, floor_id=floor_id, p=p)
    rooms = db.scalars(select(Room).where(Room.floor_id == row.id).order_by(Room.id)).all()
    return FloorDetailOut(
        **FloorOut.model_validate(row).model_dump(),
        rooms=[RoomOut.model_validate(r) for r in rooms],
    )


@router.delete("/{floor_id}")
def delete_floor(floor_id: int, db: Session = Depends(get_db), p=Depends(require_host)):
    row = must_get_floor(db, floor_id=floor_id, p=p)
    if db.scalar(select(Room.id).where(Room.floor_id == row.id)) is not None:
        raise BusinessRuleError("Tầng vẫn còn phòng, vui lòng xóa phòng trước")

    motel = db.get(MotelRoom, row.motel_id)
    emit_audit(
        db,
        actor_user_id=p.user_id,
        action="floor.delete",
        entity_type="Floor",
        entity_id=row.id,
        before=row.model_dump(),
        after=None,
    )
    db.delete(row)
    db.flush()
    if motel is not None:
        refresh_motel_counts(db, motel)
    db.commit()
    return {"ok": True}
