# backend/app/services/notifications.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..config import settings
from ..models import Notification

log = logging.getLogger("homekey.notifications")


def notify(
    db: Session,
    *,
    user_id: int,
    title: str,
    content: str,
    type: str = "notification",
    tag: Optional[str] = None,
    content_tag: Optional[str] = None,
    path: Optional[str] = None,
) -> Notification:
    row = Notification(
        user_id=int(user_id),
        title=title,
        content=content,
        type=type,
        tag=tag,
        content_tag=content_tag,
        url=f"{settings.client_base_url.rstrip('/')}/{path.lstrip('/')}" if path else None,
        is_read=False,
        created_at=datetime.utcnow(),
    )
    db.add(row)
    db.flush()
    log.info("notification.created", extra={"user_id": user_id, "tag": tag})
    return row


def list_for_user(db: Session, *, user_id: int, unread_only: bool = False, limit: int = 100) -> list[Notification]:
    q = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        q = q.where(Notification.is_read.is_(False))
    return list(db.scalars(q.order_by(Notification.id.desc()).limit(limit)).all())


def mark_all_read(db: Session, *, user_id: int) -> int:
    res = db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    return int(res.rowcount or 0)
