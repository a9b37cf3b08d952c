# backend/app/routers/notifications.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..auth import get_principal
from ..db import get_db
from ..models import Notification
from ..schemas import NotificationOut
from ..services.notifications import list_for_user, mark_all_read

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationOut])
def list_notifications(
    unread_only: bool = Query(default=False),
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
    p=Depends(get_principal),
):
    return list_for_user(db, user_id=p.user_id, unread_only=unread_only, limit=limit)


@router.put("/read-all")
def read_all(db: Session = Depends(get_db), p=Depends(get_principal)):
    n = mark_all_read(db, user_id=p.user_id)
    db.commit()
    return {"ok": True, "updated": n}


@router.put("/{notification_id}/read", response_model=NotificationOut)
def read_one(notification_id: int, db: Session = Depends(get_db), p=Depends(get_principal)):
    row = db.get(Notification, notification_id)
    if row is None or row.user_id != p.user_id:
        raise HTTPException(status_code=404, detail="notification not found")
    row.is_read = True
    db.add(row)
    db.commit()
    return row
