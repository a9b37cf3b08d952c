# backend/app/routers/energy.py
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import require_host
from ..db import get_db
from ..domain.errors import BusinessRuleError
from ..schemas import EnergyReadingIn, EnergyUsageOut
from ..services.energy import record_reading, usage_between
from ..services.ownership import must_get_room

router = APIRouter(prefix="/energy", tags=["energy"])


@router.post("/rooms/{room_id}/readings")
def add_reading(room_id: int, payload: EnergyReadingIn, db: Session = Depends(get_db), p=Depends(require_host)):
    """Cumulative meter value pushed by the host (or a meter gateway using a host token)."""
    room = must_get_room(db, room_id=room_id, p=p)
    row = record_reading(db, room_id=room.id, kwh=payload.kwh, recorded_at=payload.recorded_at)
    db.commit()
    return {"ok": True, "id": row.id}


@router.get("/rooms/{room_id}/usage", response_model=EnergyUsageOut)
def get_usage(
    room_id: int,
    start: date = Query(...),
    end: date = Query(...),
    db: Session = Depends(get_db),
    p=Depends(require_host),
):
    room = must_get_room(db, room_id=room_id, p=p)
    if end < start:
        raise BusinessRuleError("Khoảng thời gian không hợp lệ")
    usage = usage_between(db, room_id=room.id, start=start, end=end)
    if usage is None:
        raise BusinessRuleError("Phòng chưa có dữ liệu điện năng", status_code=404)
    return EnergyUsageOut(total_kwh=usage.total_kwh, labels=usage.labels, daily_kwh=usage.daily_kwh)
