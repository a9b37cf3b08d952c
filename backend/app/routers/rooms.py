# backend/app/routers/rooms.py
from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ..auth import require_host
from ..db import get_db
from ..domain.audit import emit_audit
from ..domain.errors import BusinessRuleError
from ..models import Room
from ..schemas import (
    JobOut,
    MessageOut,
    MotelOut,
    QuickContractIn,
    RentedRoomOut,
    RoomCreate,
    RoomDetailOut,
    RoomFields,
    RoomOut,
    RoomStatusIn,
    RoomUtilitiesIn,
)
from ..services import rooms as room_service
from ..services.contracts import quick_deposit, quick_rent
from ..services.imports import MODE_DEPOSIT, MODE_RENT, validate_rows
from ..services.ownership import must_get_floor, must_get_room
from ..services.scheduler import PROCESS_BULK_DEPOSIT, PROCESS_BULK_RENT, schedule
from ..services.spreadsheets import XLSX_MEDIA_TYPE, errors_workbook, read_import_rows

router = APIRouter(prefix="/rooms", tags=["rooms"])


def _xlsx(content: bytes, filename: str, status_code: int = 200) -> Response:
    return Response(
        content=content,
        status_code=status_code,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


def _quick_kwargs(payload: QuickContractIn) -> dict:
    return dict(
        phone=payload.phone_number,
        check_in=payload.check_in_time,
        room_id=payload.room_id,
        rental_period=payload.rental_period,
        bank_id=payload.bank_id,
        key_payment=payload.key_payment,
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email,
        password=payload.password,
        confirm_password=payload.confirm_password,
    )


def _guard_room(db: Session, room_id: int, p) -> None:
    # missing rooms are reported by the contract service itself
    if db.get(Room, room_id) is not None:
        must_get_room(db, room_id=room_id, p=p)


# -------------------- quick contracts --------------------

@router.post("/quick-deposit", response_model=JobOut)
def quick_deposit_by_admin(payload: QuickContractIn, db: Session = Depends(get_db), p=Depends(require_host)):
    _guard_room(db, payload.room_id, p)
    job = quick_deposit(db, **_quick_kwargs(payload))
    db.commit()

    emit_audit(db, actor_user_id=p.user_id, action="job.quick_deposit", entity_type="Job", entity_id=job.id, after=job.model_dump())
    return job


@router.post("/quick-rent", response_model=JobOut)
def quick_rent_by_admin(payload: QuickContractIn, db: Session = Depends(get_db), p=Depends(require_host)):
    _guard_room(db, payload.room_id, p)
    job = quick_rent(db, **_quick_kwargs(payload))
    db.commit()

    emit_audit(db, actor_user_id=p.user_id, action="job.quick_rent", entity_type="Job", entity_id=job.id, after=job.model_dump())
    return job


def _bulk(db: Session, file: Optional[UploadFile], bank_id: Optional[int], mode: str, task_name: str, p):
    if file is None:
        raise BusinessRuleError("Vui lòng tải file lên")

    try:
        rows = read_import_rows(file.file.read())
    except (OSError, ValueError, KeyError) as e:
        raise BusinessRuleError(f"File không hợp lệ: {e}")
    if not rows:
        raise BusinessRuleError("File không có dữ liệu")

    errors = validate_rows(db, rows, mode=mode, owner_id=None if p.is_master else p.user_id)
    if errors:
        return _xlsx(errors_workbook(errors), "validation-errors.xlsx", status_code=400)

    schedule(task_name, rows=rows, bank_id=bank_id, admin_user_id=p.user_id)
    return MessageOut(message="Dữ liệu hợp lệ, vui lòng chờ trong giây lát")


@router.post("/quick-deposit/bulk", response_model=MessageOut)
def quick_deposit_many_rooms(
    file: Optional[UploadFile] = File(default=None),
    bank_id: Optional[int] = Form(default=None),
    db: Session = Depends(get_db),
    p=Depends(require_host),
):
    return _bulk(db, file, bank_id, MODE_DEPOSIT, PROCESS_BULK_DEPOSIT, p)


@router.post("/quick-rent/bulk", response_model=MessageOut)
def quick_rent_many_rooms(
    file: Optional[UploadFile] = File(default=None),
    bank_id: Optional[int] = Form(default=None),
    db: Session = Depends(get_db),
    p=Depends(require_host),
):
    return _bulk(db, file, bank_id, MODE_RENT, PROCESS_BULK_RENT, p)


@router.get("/rented", response_model=list[RentedRoomOut])
def list_rented_rooms(db: Session = Depends(get_db), p=Depends(require_host)):
    rows = room_service.list_rented_jobs(db, owner_id=None if p.is_master else p.user_id)
    return [
        RentedRoomOut(
            job=JobOut.model_validate(r["job"]),
            room=RoomOut.model_validate(r["room"]),
            motel=MotelOut.model_validate(r["motel"]),
        )
        for r in rows
    ]


# -------------------- room CRUD --------------------

@router.post("", response_model=RoomOut)
def create_room(payload: RoomCreate, db: Session = Depends(get_db), p=Depends(require_host)):
    must_get_floor(db, floor_id=payload.floor_id, p=p)
    row = room_service.create_room(db, floor_id=payload.floor_id, data=payload.model_dump(exclude={"floor_id"}))
    db.commit()

    emit_audit(db, actor_user_id=p.user_id, action="room.create", entity_type="Room", entity_id=row.id, after=row.model_dump())
    return row


@router.get("/{room_id}", response_model=RoomDetailOut)
def get_room_detail(room_id: int, db: Session = Depends(get_db), p=Depends(require_host)):
    must_get_room(db, room_id=room_id, p=p)
    d = room_service.get_room_detail(db, room_id)
    return RoomDetailOut(
        room=RoomOut.model_validate(d["room"]),
        floor_id=d["floor_id"],
        motel_id=d["motel_id"],
        motel=MotelOut.model_validate(d["motel"]) if d["motel"] else None,
    )


@router.get("/{room_id}/available-export")
def export_available_rooms(room_id: int, db: Session = Depends(get_db), p=Depends(require_host)):
    must_get_room(db, room_id=room_id, p=p)
    filename, content = room_service.available_rooms_workbook(db, room_id)
    return _xlsx(content, filename)


@router.put("/{room_id}", response_model=RoomOut)
def edit_room(room_id: int, payload: RoomFields, db: Session = Depends(get_db), p=Depends(require_host)):
    row = must_get_room(db, room_id=room_id, p=p)
    before = row.model_dump()
    row = room_service.edit_room(db, room_id, payload.model_dump(exclude_unset=True))
    db.commit()

    emit_audit(db, actor_user_id=p.user_id, action="room.update", entity_type="Room", entity_id=row.id, before=before, after=row.model_dump())
    return row


@router.put("/{room_id}/status", response_model=RoomOut)
def edit_room_status(room_id: int, payload: RoomStatusIn, db: Session = Depends(get_db), p=Depends(require_host)):
    row = must_get_room(db, room_id=room_id, p=p)
    before = row.model_dump()
    row = room_service.edit_room_status(db, room_id, payload.status)
    db.commit()

    emit_audit(db, actor_user_id=p.user_id, action="room.status", entity_type="Room", entity_id=row.id, before=before, after=row.model_dump())
    return row


@router.patch("/{room_id}/utilities", response_model=RoomOut)
def update_utilities(room_id: int, payload: RoomUtilitiesIn, db: Session = Depends(get_db), p=Depends(require_host)):
    row = must_get_room(db, room_id=room_id, p=p)
    before = row.model_dump()
    row = room_service.update_room_utilities(db, room_id, payload.model_dump(exclude_unset=True))
    db.commit()

    emit_audit(db, actor_user_id=p.user_id, action="room.utilities", entity_type="Room", entity_id=row.id, before=before, after=row.model_dump())
    return row


@router.delete("/{room_id}")
def delete_room(room_id: int, db: Session = Depends(get_db), p=Depends(require_host)):
    row = must_get_room(db, room_id=room_id, p=p)
    before = row.model_dump()
    room_service.delete_room(db, room_id)
    db.commit()

    emit_audit(db, actor_user_id=p.user_id, action="room.delete", entity_type="Room", entity_id=room_id, before=before, after=None)
    return {"ok": True}
