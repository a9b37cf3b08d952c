# backend/app/services/energy.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models import EnergyReading


@dataclass
class EnergyUsage:
    total_kwh: float = 0.0
    labels: list[str] = field(default_factory=list)
    daily_kwh: list[float] = field(default_factory=list)


def record_reading(db: Session, *, room_id: int, kwh: float, recorded_at: Optional[datetime] = None) -> EnergyReading:
    row = EnergyReading(room_id=room_id, kwh=float(kwh), recorded_at=recorded_at or datetime.utcnow())
    db.add(row)
    db.flush()
    return row


def _last_value_before(db: Session, room_id: int, before: datetime) -> Optional[float]:
    row = db.scalar(
        select(EnergyReading)
        .where(EnergyReading.room_id == room_id, EnergyReading.recorded_at < before)
        .order_by(EnergyReading.recorded_at.desc())
    )
    return float(row.kwh) if row else None


def usage_between(db: Session, *, room_id: int, start: date, end: date) -> Optional[EnergyUsage]:
    """
    Daily consumption from cumulative meter readings, inclusive of both days.

    Each day's usage is its last reading minus the previous known reading.
    Returns None when the room has never reported a reading.
    """
    has_any = db.scalar(select(EnergyReading.id).where(EnergyReading.room_id == room_id))
    if has_any is None:
        return None

    start_dt = datetime.combine(start, time.min)
    end_dt = datetime.combine(end + timedelta(days=1), time.min)
    readings = db.scalars(
        select(EnergyReading)
        .where(
            EnergyReading.room_id == room_id,
            EnergyReading.recorded_at >= start_dt,
            EnergyReading.recorded_at < end_dt,
        )
        .order_by(EnergyReading.recorded_at.asc())
    ).all()

    last_by_day: dict[date, float] = {}
    for r in readings:
        last_by_day[r.recorded_at.date()] = float(r.kwh)

    out = EnergyUsage()
    prev = _last_value_before(db, room_id, start_dt)
    day = start
    while day <= end:
        cur = last_by_day.get(day)
        used = 0.0
        if cur is not None:
            if prev is not None:
                used = max(0.0, cur - prev)
            prev = cur
        out.labels.append(day.strftime("%d/%m"))
        out.daily_kwh.append(round(used, 3))
        day += timedelta(days=1)

    out.total_kwh = round(sum(out.daily_kwh), 3)
    return out
