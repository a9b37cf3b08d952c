# backend/tests/test_rooms_api.py
from __future__ import annotations

import io

from openpyxl import Workbook, load_workbook

from app.domain.clock import fmt_date, local_today
from app.models import ROLE_HOST
from app.services.scheduler import PROCESS_BULK_DEPOSIT
from app.services.spreadsheets import XLSX_MEDIA_TYPE

OTHER_HOST = {"X-User-Email": "other-host@test.local", "X-User-Role": ROLE_HOST}


def _workbook(rows) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.append(["STT", "Tên phòng", "ID phòng", "Họ và Tên", "Họ", "Tên", "SĐT", "Ngày", "Số tháng", "Email", "Mật khẩu"])
    for r in rows:
        ws.append(r)
    out = io.BytesIO()
    wb.save(out)
    return out.getvalue()


def _tenant_row(room, phone="0987654321", email="minh@test.local"):
    return [1, room.name, room.id, "Trần Minh", "Trần", "Minh", phone, fmt_date(local_today()), 6, email, "123456"]


def test_motel_floor_room_crud_updates_counters(client, host_headers):
    r = client.post("/api/motels", json={"name": "Nhà trọ B", "address": "2 Lê Lợi"}, headers=host_headers)
    assert r.status_code == 200
    motel_id = r.json()["id"]

    r = client.post("/api/floors", json={"motel_id": motel_id, "name": "Tầng 1"}, headers=host_headers)
    assert r.status_code == 200
    floor_id = r.json()["id"]

    r = client.post("/api/rooms", json={"floor_id": floor_id, "name": "B101", "price": 2_500_000}, headers=host_headers)
    assert r.status_code == 200
    room = r.json()
    assert room["status"] == "available"

    motel = client.get(f"/api/motels/{motel_id}", headers=host_headers).json()
    assert motel["total_floor"] == 1
    assert motel["total_room"] == 1
    assert motel["available_room"] == 1

    r = client.put(f"/api/rooms/{room['id']}/status", json={"status": "rented"}, headers=host_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "rented"
    motel = client.get(f"/api/motels/{motel_id}", headers=host_headers).json()
    assert motel["rented_room"] == 1
    assert motel["available_room"] == 0


def test_status_override_rejects_unknown_status(client, host_headers, rooms):
    r = client.put(f"/api/rooms/{rooms[0].id}/status", json={"status": "broken"}, headers=host_headers)
    assert r.status_code == 400
    assert r.json() == {"detail": "Trạng thái phòng không hợp lệ"}


def test_monthly_billing_needs_a_contract(client, host_headers, rooms):
    r = client.put(f"/api/rooms/{rooms[0].id}/status", json={"status": "monthlyPayment"}, headers=host_headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "Phòng chưa có hợp đồng"


def test_quick_deposit_endpoint(client, host_headers, rooms, tenant_fields, sent_tasks):
    payload = {
        "phone_number": tenant_fields["phone"],
        "check_in_time": fmt_date(local_today()),
        "room_id": rooms[0].id,
        "first_name": tenant_fields["first_name"],
        "last_name": tenant_fields["last_name"],
        "email": tenant_fields["email"],
        "password": tenant_fields["password"],
        "confirm_password": tenant_fields["confirm_password"],
    }
    r = client.post("/api/rooms/quick-deposit", json=payload, headers=host_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "pendingActivated"

    again = client.post("/api/rooms/quick-deposit", json=payload, headers=host_headers)
    assert again.status_code == 400
    assert again.json()["detail"] == "Phòng đã được đặt, vui lòng chọn phòng khác"

    rented = client.get("/api/rooms/rented", headers=host_headers).json()
    assert [x["room"]["id"] for x in rented] == [rooms[0].id]


def test_quick_deposit_unknown_room(client, host_headers, motel, tenant_fields):
    payload = {
        "phone_number": tenant_fields["phone"],
        "check_in_time": fmt_date(local_today()),
        "room_id": 999999,
        "first_name": tenant_fields["first_name"],
        "last_name": tenant_fields["last_name"],
        "email": tenant_fields["email"],
        "password": tenant_fields["password"],
        "confirm_password": tenant_fields["confirm_password"],
    }
    r = client.post("/api/rooms/quick-deposit", json=payload, headers=host_headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "Phòng không tồn tại"


def test_bulk_upload_without_file(client, host_headers, motel):
    r = client.post("/api/rooms/quick-deposit/bulk", headers=host_headers)
    assert r.status_code == 400
    assert r.json() == {"detail": "Vui lòng tải file lên"}


def test_bulk_upload_with_bad_rows_returns_error_workbook(client, host_headers, rooms, sent_tasks):
    content = _workbook([_tenant_row(rooms[0], phone="12ab")])
    r = client.post(
        "/api/rooms/quick-deposit/bulk",
        files={"file": ("rows.xlsx", content, XLSX_MEDIA_TYPE)},
        headers=host_headers,
    )
    assert r.status_code == 400
    assert r.headers["content-type"].startswith(XLSX_MEDIA_TYPE)

    values = list(load_workbook(io.BytesIO(r.content)).active.iter_rows(values_only=True))
    assert values[1][0] == 1
    assert "Số điện thoại không hợp lệ" in values[1][1]
    assert sent_tasks == []


def test_bulk_upload_with_valid_rows_is_queued(client, host, host_headers, rooms, bank, sent_tasks):
    content = _workbook([_tenant_row(rooms[0]), _tenant_row(rooms[1], phone="0987000001", email="b@test.local")])
    r = client.post(
        "/api/rooms/quick-deposit/bulk",
        files={"file": ("rows.xlsx", content, XLSX_MEDIA_TYPE)},
        data={"bank_id": str(bank.id)},
        headers=host_headers,
    )
    assert r.status_code == 200
    assert r.json() == {"message": "Dữ liệu hợp lệ, vui lòng chờ trong giây lát"}

    (call,) = sent_tasks
    assert call["name"] == PROCESS_BULK_DEPOSIT
    assert call["kwargs"]["bank_id"] == bank.id
    assert call["kwargs"]["admin_user_id"] == host.id
    assert [row["roomId"] for row in call["kwargs"]["rows"]] == [str(rooms[0].id), str(rooms[1].id)]


def test_available_rooms_export(client, host_headers, rooms):
    r = client.get(f"/api/rooms/{rooms[0].id}/available-export", headers=host_headers)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith(XLSX_MEDIA_TYPE)

    values = list(load_workbook(io.BytesIO(r.content)).active.iter_rows(values_only=True))
    assert len(values) == 1 + len(rooms)


def test_other_hosts_cannot_see_rooms(client, host_headers, rooms):
    r = client.get(f"/api/rooms/{rooms[0].id}", headers=OTHER_HOST)
    assert r.status_code == 404

    r = client.get("/api/motels", headers=OTHER_HOST)
    assert r.json() == []


def test_customers_cannot_use_admin_endpoints(client, rooms):
    r = client.get("/api/rooms/rented", headers={"X-User-Email": "guest@test.local"})
    assert r.status_code == 403
