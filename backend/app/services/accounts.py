# backend/app/services/accounts.py
from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth import _hash_password
from ..config import settings
from ..domain.errors import BusinessRuleError
from ..models import User, ROLE_CUSTOMER

log = logging.getLogger("homekey.accounts")

PHONE_RE = re.compile(r"^[0-9]{9,10}$")
EMAIL_RE = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
MIN_PASSWORD_LEN = 6


def normalize_phone(raw: object) -> tuple[str, str]:
    """'0912 345 678' -> ('+84', '912345678')"""
    s = re.sub(r"\s+", "", str(raw or ""))
    return settings.phone_country_code, s.lstrip("0")


def is_valid_phone(raw: object) -> bool:
    return bool(PHONE_RE.match(str(raw or "").strip()))


def is_valid_email(raw: object) -> bool:
    return bool(EMAIL_RE.match(str(raw or "").strip()))


def find_user_by_phone(db: Session, phone: object) -> Optional[User]:
    _, number = normalize_phone(phone)
    if not number:
        return None
    return db.scalar(select(User).where(User.phone_number == number, User.is_deleted.is_(False)))


def find_user_by_email(db: Session, email: str) -> Optional[User]:
    e = (email or "").strip().lower()
    if not e:
        return None
    return db.scalar(select(User).where(User.email == e, User.is_deleted.is_(False)))


def validate_sign_up(
    *,
    first_name: object,
    last_name: object,
    email: object,
    password: object,
    phone: object,
) -> list[str]:
    errors: list[str] = []
    if not str(first_name or "").strip():
        errors.append("first_name")
    if not str(last_name or "").strip():
        errors.append("last_name")
    if not is_valid_email(email):
        errors.append("email")
    if len(str(password or "")) < MIN_PASSWORD_LEN:
        errors.append("password")
    if not is_valid_phone(phone):
        errors.append("phone")
    return errors


def create_customer(
    db: Session,
    *,
    first_name: str,
    last_name: str,
    email: str,
    password: str,
    phone: object,
    roles: str = ROLE_CUSTOMER,
) -> User:
    code, number = normalize_phone(phone)
    user = User(
        first_name=str(first_name).strip(),
        last_name=str(last_name).strip(),
        email=str(email).strip().lower(),
        phone_country_code=code,
        phone_number=number,
        phone_number_full=f"{code}{number}",
        password_hash=_hash_password(str(password)),
        roles=roles,
        active=True,
        created_at=datetime.utcnow(),
    )
    db.add(user)
    db.flush()
    log.info("user.created", extra={"user_id": user.id})
    return user


def resolve_tenant(
    db: Session,
    *,
    phone: object,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    email: Optional[str] = None,
    password: Optional[str] = None,
    confirm_password: Optional[str] = None,
) -> User:
    """
    Tenant for an admin-created contract: the account owning `phone`, or a new
    customer account built from the sign-up fields. Locked accounts are refused.
    """
    user = find_user_by_phone(db, phone)
    if user is None:
        if not (first_name and last_name and email and password and confirm_password):
            raise BusinessRuleError("Tài khoản không tồn tại, vui lòng nhập đủ thông tin để tạo tài khoản")
        if password != confirm_password:
            raise BusinessRuleError("Mật khẩu không trùng nhau")
        if validate_sign_up(first_name=first_name, last_name=last_name, email=email, password=password, phone=phone):
            raise BusinessRuleError("Tài khoản không tồn tại, dữ liệu tạo tài khoản mới không hợp lệ")
        if find_user_by_email(db, email) is not None:
            raise BusinessRuleError("Email đã tồn tại")
        user = create_customer(
            db,
            first_name=first_name,
            last_name=last_name,
            email=email,
            password=password,
            phone=phone,
        )

    if user.is_locked:
        raise BusinessRuleError(
            "Tài khoản của khách hàng đã bị khóa tạm thời nên không thể tiến hành đặt cọc"
        )
    return user
