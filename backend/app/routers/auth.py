# backend/app/routers/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import Principal, _verify_password, get_principal, issue_token
from ..db import get_db
from ..domain.errors import BusinessRuleError
from ..schemas import LoginIn, SignUpIn, TokenOut, UserOut
from ..services.accounts import (
    create_customer,
    find_user_by_email,
    find_user_by_phone,
    validate_sign_up,
)
from ..services.ownership import must_get_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/sign-up", response_model=UserOut)
def sign_up(payload: SignUpIn, db: Session = Depends(get_db)):
    if payload.password != payload.confirm_password:
        raise BusinessRuleError("Mật khẩu không trùng nhau")
    invalid = validate_sign_up(
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email,
        password=payload.password,
        phone=payload.phone,
    )
    if invalid:
        raise BusinessRuleError(f"Dữ liệu không hợp lệ: {', '.join(invalid)}")
    if find_user_by_email(db, payload.email) is not None:
        raise BusinessRuleError("Email đã tồn tại")
    if find_user_by_phone(db, payload.phone) is not None:
        raise BusinessRuleError("Số điện thoại đã tồn tại")

    user = create_customer(
        db,
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email,
        password=payload.password,
        phone=payload.phone,
    )
    user.address = payload.address
    db.commit()
    db.refresh(user)
    return user


@router.post("/login", response_model=TokenOut)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    username = payload.username.strip()
    user = find_user_by_email(db, username) if "@" in username else find_user_by_phone(db, username)
    if user is None or not _verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Sai tài khoản hoặc mật khẩu")
    if user.is_locked:
        raise HTTPException(status_code=403, detail="Tài khoản đã bị khóa, vui lòng liên hệ quản trị viên")
    return TokenOut(access_token=issue_token(user))


@router.get("/me", response_model=UserOut)
def me(db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    return must_get_user(db, user_id=p.user_id)
