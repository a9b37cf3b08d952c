# backend/app/auth.py
from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Any

import jwt
from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import settings
from .db import get_db
from .models import User, ROLE_CUSTOMER, ROLE_HOST, ROLE_MASTER


@dataclass(frozen=True)
class Principal:
    user_id: int
    email: str
    roles: tuple[str, ...]

    @property
    def is_master(self) -> bool:
        return ROLE_MASTER in self.roles

    @property
    def is_host(self) -> bool:
        return ROLE_HOST in self.roles or self.is_master


# -------------------------
# Password hashing (simple)
# -------------------------
def _hash_password(password: str) -> str:
    # PBKDF2-HMAC-SHA256 (no external deps)
    salt = base64.urlsafe_b64encode(secrets.token_bytes(12))
    dk = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, 120_000)
    return f"pbkdf2_sha256${salt.decode()}${base64.urlsafe_b64encode(dk).decode()}"


def _verify_password(password: str, stored: Optional[str]) -> bool:
    if not stored:
        return False
    try:
        algo, salt_s, hash_s = stored.split("$", 2)
    except ValueError:
        return False
    if algo != "pbkdf2_sha256":
        return False
    dk = hashlib.pbkdf2_hmac("sha256", password.encode(), salt_s.encode(), 120_000)
    return hmac.compare_digest(base64.urlsafe_b64encode(dk).decode(), hash_s)


# -------------------------
# JWT helpers
# -------------------------
def _jwt_sign(payload: dict[str, Any]) -> str:
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def _jwt_verify(token: str) -> dict[str, Any]:
    try:
        return dict(jwt.decode(token, settings.jwt_secret, algorithms=["HS256"]))
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


def issue_token(user: User) -> str:
    exp = datetime.now(timezone.utc) + timedelta(minutes=int(settings.jwt_exp_minutes))
    return _jwt_sign({"sub": str(user.id), "email": user.email or "", "exp": int(exp.timestamp())})


def _principal_from_user(user: User) -> Principal:
    if user.is_deleted:
        raise HTTPException(status_code=401, detail="Unknown user")
    return Principal(user_id=int(user.id), email=str(user.email or ""), roles=tuple(user.role_list))


# -------------------------
# get_principal
# -------------------------
def get_principal(
    request: Request,
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> Principal:
    """
    Auth modes supported (in priority order):
      1) Authorization: Bearer <token>
      2) dev header spoofing (ONLY if settings.auth_mode == "dev")
    """
    if authorization and str(authorization).lower().startswith("bearer "):
        claims = _jwt_verify(str(authorization).split(" ", 1)[1].strip())
        sub = str(claims.get("sub") or "")
        if not sub:
            raise HTTPException(status_code=401, detail="Token missing sub")

        user = db.scalar(select(User).where(User.id == int(sub)))
        if user is None:
            raise HTTPException(status_code=401, detail="Unknown user")
        return _principal_from_user(user)

    if settings.auth_mode == "dev":
        email = (request.headers.get(settings.dev_header_user_email) or "").strip().lower()
        role_hint = (request.headers.get(settings.dev_header_user_role) or ROLE_CUSTOMER).strip()
        if not email:
            raise HTTPException(status_code=401, detail="Missing X-User-Email for dev auth")

        user = db.scalar(select(User).where(User.email == email, User.is_deleted.is_(False)))
        if user is None and settings.dev_auto_provision:
            role = role_hint if role_hint in (ROLE_CUSTOMER, ROLE_HOST, ROLE_MASTER) else ROLE_CUSTOMER
            user = User(
                email=email,
                first_name=email.split("@")[0],
                last_name="",
                roles=role,
                created_at=datetime.utcnow(),
            )
            db.add(user)
            db.commit()
            db.refresh(user)

        if user is None:
            raise HTTPException(status_code=401, detail="Dev auth could not provision user")
        return _principal_from_user(user)

    raise HTTPException(status_code=401, detail="Not authenticated")


def require_host(p: Principal = Depends(get_principal)) -> Principal:
    if not p.is_host:
        raise HTTPException(status_code=403, detail="Requires host role")
    return p


def require_master(p: Principal = Depends(get_principal)) -> Principal:
    if not p.is_master:
        raise HTTPException(status_code=403, detail="Requires master role")
    return p
