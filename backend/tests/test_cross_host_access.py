# backend/tests/test_cross_host_access.py
from __future__ import annotations

from app.domain.clock import fmt_date, local_today
from app.models import ROLE_HOST

TENANT = {"X-User-Email": "tenant@test.local"}
OTHER_HOST = {"X-User-Email": "other-host@test.local", "X-User-Role": ROLE_HOST}


def _deposit_with_transfer(client, room_id: int) -> tuple[dict, dict]:
    r = client.post(
        "/api/jobs",
        json={"room_id": room_id, "check_in_time": fmt_date(local_today()), "rental_period": 1},
        headers=TENANT,
    )
    assert r.status_code == 200
    job = r.json()
    assert job["status"] == "pendingDepositPayment"

    r = client.post("/api/transactions", json={"order_id": job["current_order_id"], "key_payment": "FT001"}, headers=TENANT)
    assert r.status_code == 200
    return job, r.json()


def test_other_host_cannot_see_or_approve(client, host_headers, rooms):
    job, txn = _deposit_with_transfer(client, rooms[0].id)

    assert client.get(f"/api/jobs/{job['id']}", headers=OTHER_HOST).status_code == 404
    assert client.get("/api/transactions", headers=OTHER_HOST).json() == []
    assert client.put(f"/api/transactions/{txn['id']}/approve", headers=OTHER_HOST).status_code == 404

    waiting = client.get("/api/transactions", params={"status": "waiting"}, headers=host_headers).json()
    assert [t["id"] for t in waiting] == [txn["id"]]


def test_tenant_cannot_approve_own_transfer(client, rooms):
    _, txn = _deposit_with_transfer(client, rooms[0].id)
    assert client.put(f"/api/transactions/{txn['id']}/approve", headers=TENANT).status_code == 403


def test_host_approval_reaches_tenant(client, host_headers, rooms):
    job, txn = _deposit_with_transfer(client, rooms[0].id)

    r = client.put(f"/api/transactions/{txn['id']}/approve", headers=host_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "success"

    assert client.get(f"/api/jobs/{job['id']}", headers=TENANT).json()["status"] == "pendingActivated"
    assert len(client.get("/api/bills", headers=TENANT).json()) == 1
    assert len(client.get("/api/bills", headers=host_headers).json()) == 1
    assert client.get("/api/bills", headers=OTHER_HOST).json() == []

    notes = client.get("/api/notifications", params={"unread_only": True}, headers=TENANT).json()
    assert any(n["title"] == "Thông báo kích hoạt hợp đồng" for n in notes)


def test_invalid_transaction_status_filter(client, host_headers):
    r = client.get("/api/transactions", params={"status": "pending"}, headers=host_headers)
    assert r.status_code == 400
    assert r.json() == {"detail": "Trạng thái giao dịch không hợp lệ"}
