# backend/app/db.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from .config import settings


class Base(DeclarativeBase):
    def model_dump(self) -> dict[str, Any]:
        """Column snapshot used for audit before/after payloads."""
        out: dict[str, Any] = {}
        for col in self.__table__.columns:
            v = getattr(self, col.key)
            if isinstance(v, (date, datetime)):
                v = v.isoformat()
            out[col.key] = v
        return out


_connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    future=True,
    connect_args=_connect_args,
)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
    future=True,
)


def get_db():
    """
    Request-scoped session.

    Rolls back on any exception so a failed statement (Postgres aborts the
    whole transaction) never leaks into the next query on this session.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
