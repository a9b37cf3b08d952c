# backend/tests/conftest.py
from __future__ import annotations

import os
import tempfile

# must be set before app.config / app.db are imported
_DB_PATH = os.path.join(tempfile.mkdtemp(prefix="homekey-tests-"), "test.db")
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_PATH}"
os.environ["APP_ENV"] = "test"
os.environ["AUTH_MODE"] = "dev"

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app import models  # noqa: E402,F401
from app.db import Base, SessionLocal, engine  # noqa: E402
from app.models import Banking, MotelRoom, ROLE_HOST  # noqa: E402
from app.services.accounts import create_customer  # noqa: E402
from app.services.inventory import create_floor  # noqa: E402
from app.services.rooms import create_room  # noqa: E402
from app.workers.celery_app import celery_app  # noqa: E402

HOST_EMAIL = "host@test.local"


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def sent_tasks(monkeypatch):
    """Captures everything handed to Celery instead of talking to a broker."""
    calls: list[dict] = []

    def _send_task(name, args=None, kwargs=None, eta=None, **options):
        calls.append({"name": name, "kwargs": dict(kwargs or {}), "eta": eta})

    monkeypatch.setattr(celery_app, "send_task", _send_task)
    return calls


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def client():
    from app.main import create_app

    return TestClient(create_app())


@pytest.fixture
def host(db):
    user = create_customer(
        db,
        first_name="Lan",
        last_name="Nguyễn",
        email=HOST_EMAIL,
        password="123456",
        phone="0911111111",
        roles=ROLE_HOST,
    )
    db.commit()
    return user


@pytest.fixture
def host_headers(host):
    return {"X-User-Email": HOST_EMAIL, "X-User-Role": ROLE_HOST}


@pytest.fixture
def bank(db, host):
    row = Banking(
        user_id=host.id,
        bank_name="Vietcombank",
        account_number="0011000000001",
        account_holder="NGUYEN LAN",
        created_at=datetime.utcnow(),
    )
    db.add(row)
    db.commit()
    return row


@pytest.fixture
def motel(db, host):
    row = MotelRoom(owner_id=host.id, name="Nhà trọ A", address="1 Võ Văn Ngân", created_at=datetime.utcnow())
    db.add(row)
    db.flush()
    floor = create_floor(db, row, "Tầng 1")
    for i in range(1, 4):
        create_room(
            db,
            floor_id=floor.id,
            data={
                "name": f"P10{i}",
                "price": 3_000_000,
                "deposit_price": 2_000_000,
                "electricity_price": 3_500,
                "water_price": 100_000,
                "wifi_price": 50_000,
                "vehicle_price": 100_000,
                "garbage_price": 30_000,
                "person": 2,
                "vehicle": 1,
                "minimum_months": 1,
                "room_password": "1234",
            },
        )
    db.commit()
    return row


@pytest.fixture
def rooms(db, motel):
    from sqlalchemy import select

    from app.models import Floor, Room

    return list(
        db.scalars(
            select(Room).join(Floor, Floor.id == Room.floor_id).where(Floor.motel_id == motel.id).order_by(Room.id)
        ).all()
    )


@pytest.fixture
def tenant_fields():
    return dict(
        phone="0987654321",
        first_name="Minh",
        last_name="Trần",
        email="minh@test.local",
        password="123456",
        confirm_password="123456",
    )
