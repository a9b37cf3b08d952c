# backend/tests/test_imports.py
from __future__ import annotations

import io
from datetime import date

from openpyxl import Workbook, load_workbook
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

import app.services.imports as imports_service
from app.models import Job, Notification, ROOM_DEPOSITED
from app.services.imports import MODE_DEPOSIT, MODE_RENT, process_rows, validate_rows
from app.services.spreadsheets import IMPORT_COLUMNS, errors_workbook, read_import_rows

TODAY = date(2026, 10, 19)


def _row(room, **over):
    row = {
        "order": "1",
        "roomName": room.name,
        "roomId": str(room.id),
        "fullName": "Trần Minh",
        "lastName": "Trần",
        "firstName": "Minh",
        "phone": "0987654321",
        "checkInTime": "20/10/2026",
        "rentalPeriod": "6",
        "email": "minh@test.local",
        "password": "123456",
    }
    row.update(over)
    return row


def test_valid_deposit_row_passes(db, rooms):
    assert validate_rows(db, [_row(rooms[0])], mode=MODE_DEPOSIT, today=TODAY) == []


def test_field_errors_are_collected_per_row(db, rooms):
    rows = [
        _row(rooms[0], phone="12ab"),
        _row(rooms[1], email="not-an-email"),
        _row(rooms[2], checkInTime="2026-10-20"),
    ]
    out = validate_rows(db, rows, mode=MODE_DEPOSIT, today=TODAY)

    assert [e["row"] for e in out] == [1, 2, 3]
    assert out[0]["errors"]["phone"] == "Số điện thoại không hợp lệ"
    assert out[1]["errors"]["email"] == "Email không hợp lệ"
    assert out[2]["errors"]["checkInTime"] == "Định dạng ngày tháng không hợp lệ"


def test_blank_required_cells(db, rooms):
    out = validate_rows(db, [_row(rooms[0], firstName="", roomName="")], mode=MODE_DEPOSIT, today=TODAY)
    errs = out[0]["errors"]
    assert errs["firstName"] == "Tên không được để trống"
    assert errs["roomName"] == "Tên phòng không được để trống"


def test_duplicate_room_and_name_mismatch(db, rooms):
    rows = [
        _row(rooms[0]),
        _row(rooms[0], phone="0987000001", email="b@test.local"),
        _row(rooms[1], roomName="P999", phone="0987000002", email="c@test.local"),
    ]
    out = {e["row"]: e["errors"] for e in validate_rows(db, rows, mode=MODE_DEPOSIT, today=TODAY)}

    assert 1 not in out
    assert out[2]["roomId"] == "Phòng bị trùng lặp trong bảng dữ liệu"
    assert out[3]["roomName"] == "Tên phòng tìm thấy và tên phòng trong bảng dữ liệu không trùng nhau"


def test_rooms_of_another_host_look_missing(db, rooms, host):
    out = validate_rows(db, [_row(rooms[0])], mode=MODE_DEPOSIT, today=TODAY, owner_id=host.id + 100)
    assert out[0]["errors"]["roomId"] == "Phòng không tồn tại"

    assert validate_rows(db, [_row(rooms[0])], mode=MODE_DEPOSIT, today=TODAY, owner_id=host.id) == []


def test_rent_rows_need_a_past_check_in(db, rooms):
    out = validate_rows(db, [_row(rooms[0])], mode=MODE_RENT, today=TODAY)
    assert out[0]["errors"]["checkInTime"].startswith("Vui lòng nhập thời gian bắt đầu thuê")

    assert validate_rows(db, [_row(rooms[0], checkInTime="01/10/2026")], mode=MODE_RENT, today=TODAY) == []


def test_process_rows_keeps_going_after_a_failure(db, rooms, host):
    rows = [
        _row(rooms[0]),
        # same room again: valid on its own, fails once row 1 has taken the room
        _row(rooms[0], phone="0987000001", email="b@test.local"),
    ]
    result = process_rows(db, rows, mode=MODE_DEPOSIT, bank_id=None, admin_user_id=host.id, today=TODAY)

    assert len(result["created_job_ids"]) == 1
    assert result["failed"] == [{"row": 2, "error": "Phòng đã được đặt, vui lòng chọn phòng khác"}]

    db.expire_all()
    assert db.get(Job, result["created_job_ids"][0]) is not None
    assert rooms[0].status == ROOM_DEPOSITED
    note = db.scalar(select(Notification).where(Notification.user_id == host.id))
    assert note.content == "Thành công 1/2 dòng."


def test_process_rows_survives_a_database_error_on_one_row(db, rooms, host, monkeypatch):
    real = imports_service.quick_deposit

    def flaky(db, **kw):
        if kw["phone"] == "0987000001":
            raise OperationalError("INSERT INTO jobs", {}, Exception("database is locked"))
        return real(db, **kw)

    monkeypatch.setattr(imports_service, "quick_deposit", flaky)
    rows = [
        _row(rooms[0], phone="0987000001", email="b@test.local"),
        _row(rooms[1]),
    ]
    result = process_rows(db, rows, mode=MODE_DEPOSIT, bank_id=None, admin_user_id=host.id, today=TODAY)

    assert len(result["created_job_ids"]) == 1
    assert result["failed"][0]["row"] == 1
    assert "database is locked" in result["failed"][0]["error"]
    note = db.scalar(select(Notification).where(Notification.user_id == host.id))
    assert note.content == "Thành công 1/2 dòng."


def _upload(*data_rows) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.append(["STT", "Tên phòng", "ID phòng", "Họ và Tên", "Họ", "Tên", "SĐT", "Ngày", "Số tháng", "Email", "Mật khẩu"])
    for r in data_rows:
        ws.append(r)
    out = io.BytesIO()
    wb.save(out)
    return out.getvalue()


def test_read_import_rows_normalises_cells():
    content = _upload(
        [1, "P101", 7.0, "Trần Minh", "Trần", "Minh", "0987654321", date(2026, 10, 20), 6, "minh@test.local", None],
        [None] * 11,
    )
    rows = read_import_rows(content)

    assert len(rows) == 1
    assert set(rows[0]) == set(IMPORT_COLUMNS)
    assert rows[0]["roomId"] == "7"
    assert rows[0]["checkInTime"] == "20/10/2026"
    assert rows[0]["password"] == ""


def test_errors_workbook_lists_each_rejected_row():
    content = errors_workbook([{"row": 3, "errors": {"phone": "Số điện thoại không hợp lệ"}}])
    ws = load_workbook(io.BytesIO(content)).active
    values = list(ws.iter_rows(values_only=True))

    assert values[0] == ("row", "errors")
    assert values[1] == (3, "phone: Số điện thoại không hợp lệ")
