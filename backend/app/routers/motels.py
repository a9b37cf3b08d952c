# backend/app/routers/motels.py
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, desc
from sqlalchemy.orm import Session

from ..auth import require_host
from ..db import get_db
from ..domain.audit import emit_audit
from ..domain.errors import BusinessRuleError
from ..models import Floor, MotelRoom
from ..schemas import FloorOut, MotelCreate, MotelDetailOut, MotelOut, MotelUpdate
from ..services.ownership import must_get_motel, must_get_user

router = APIRouter(prefix="/motels", tags=["motels"])


@router.post("", response_model=MotelOut)
def create_motel(payload: MotelCreate, db: Session = Depends(get_db), p=Depends(require_host)):
    owner_id = p.user_id
    if payload.owner_id is not None and p.is_master:
        owner_id = must_get_user(db, user_id=payload.owner_id).id

    row = MotelRoom(
        **payload.model_dump(exclude={"owner_id"}),
        owner_id=owner_id,
        created_at=datetime.utcnow(),
    )
    db.add(row)
    db.commit()
    db.refresh(row)

    emit_audit(
        db,
        actor_user_id=p.user_id,
        action="motel.create",
        entity_type="MotelRoom",
        entity_id=row.id,
        before=None,
        after=row.model_dump(),
    )
    return row


@router.get("", response_model=list[MotelOut])
def list_motels(
    limit: int = Query(default=100, ge=1, le=2000),
    db: Session = Depends(get_db),
    p=Depends(require_host),
):
    q = select(MotelRoom)
    if not p.is_master:
        q = q.where(MotelRoom.owner_id == p.user_id)
    return list(db.scalars(q.order_by(desc(MotelRoom.id)).limit(limit)).all())


@router.get("/{motel_id}", response_model=MotelDetailOut)
def get_motel(motel_id: int, db: Session = Depends(get_db), p=Depends(require_host)):
    row = must_get_motel(db, motel_id=motel_id, p=p)
    floors = list(db.scalars(select(Floor).where(Floor.motel_id == row.id).order_by(Floor.id)).all())
    return MotelDetailOut(
        **MotelOut.model_validate(row).model_dump(),
        floors=[FloorOut.model_validate(f) for f in floors],
    )


@router.patch("/{motel_id}", response_model=MotelOut)
def update_motel(motel_id: int, payload: MotelUpdate, db: Session = Depends(get_db), p=Depends(require_host)):
    row = must_get_motel(db, motel_id=motel_id, p=p)
    before = row.model_dump()

    for k, v in payload.model_dump(exclude_none=True).items():
        setattr(row, k, v)
    db.commit()
    db.refresh(row)

    emit_audit(
        db,
        actor_user_id=p.user_id,
        action="motel.update",
        entity_type="MotelRoom",
        entity_id=row.id,
        before=before,
        after=row.model_dump(),
    )
    return row


@router.delete("/{motel_id}")
def delete_motel(motel_id: int, db: Session = Depends(get_db), p=Depends(require_host)):
    row = must_get_motel(db, motel_id=motel_id, p=p)
    if db.scalar(select(Floor.id).where(Floor.motel_id == row.id)) is not None:
        raise BusinessRuleError("Tòa nhà vẫn còn tầng, vui lòng xóa tầng trước")

    emit_audit(
        db,
        actor_user_id=p.user_id,
        action="motel.delete",
        entity_type="MotelRoom",
        entity_id=row.id,
        before=row.model_dump(),
        after=None,
    )
    db.delete(row)
    db.commit()
    return {"ok": True}
