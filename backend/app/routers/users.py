# backend/app/routers/users.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, desc
from sqlalchemy.orm import Session

from ..auth import require_master
from ..db import get_db
from ..domain.audit import emit_audit
from ..domain.errors import BusinessRuleError
from ..models import User, ROLE_CUSTOMER, ROLE_HOST, ROLE_MASTER
from ..schemas import RolesIn, UserOut
from ..services.ownership import must_get_user

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=list[UserOut])
def list_users(
    role: str | None = Query(default=None),
    limit: int = Query(default=200, ge=1, le=2000),
    db: Session = Depends(get_db),
    p=Depends(require_master),
):
    q = select(User).where(User.is_deleted.is_(False))
    if role:
        q = q.where(User.roles.contains(role))
    return list(db.scalars(q.order_by(desc(User.id)).limit(limit)).all())


@router.put("/{user_id}/lock", response_model=UserOut)
def toggle_lock(user_id: int, db: Session = Depends(get_db), p=Depends(require_master)):
    row = must_get_user(db, user_id=user_id)
    before = row.model_dump()
    row.is_locked = not row.is_locked
    db.commit()

    emit_audit(
        db,
        actor_user_id=p.user_id,
        action="user.lock" if row.is_locked else "user.unlock",
        entity_type="User",
        entity_id=row.id,
        before=before,
        after=row.model_dump(),
    )
    return row


@router.put("/{user_id}/roles", response_model=UserOut)
def set_roles(user_id: int, payload: RolesIn, db: Session = Depends(get_db), p=Depends(require_master)):
    allowed = {ROLE_CUSTOMER, ROLE_HOST, ROLE_MASTER}
    roles = [r for r in payload.roles if r in allowed]
    if not roles:
        raise BusinessRuleError("Quyền không hợp lệ")

    row = must_get_user(db, user_id=user_id)
    before = row.model_dump()
    row.roles = ",".join(roles)
    db.commit()

    emit_audit(
        db,
        actor_user_id=p.user_id,
        action="user.roles",
        entity_type="User",
        entity_id=row.id,
        before=before,
        after=row.model_dump(),
    )
    return row


@router.delete("/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db), p=Depends(require_master)):
    row = must_get_user(db, user_id=user_id)
    row.is_deleted = True
    db.commit()

    emit_audit(
        db,
        actor_user_id=p.user_id,
        action="user.delete",
        entity_type="User",
        entity_id=row.id,
        before=None,
        after=None,
    )
    return {"ok": True}
