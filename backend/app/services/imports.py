# backend/app/services/imports.py
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..domain.clock import local_today
from ..domain.errors import BusinessRuleError
from ..models import Room, ROOM_AVAILABLE
from .accounts import (
    find_user_by_email,
    find_user_by_phone,
    is_valid_email,
    is_valid_phone,
    validate_sign_up,
)
from .contracts import (
    deposit_window_error,
    parse_check_in,
    quick_deposit,
    quick_rent,
    rent_window_error,
)
from .inventory import has_waiting_deposit, room_floor_motel
from .notifications import notify

log = logging.getLogger("homekey.imports")

MODE_DEPOSIT = "deposit"
MODE_RENT = "rent"

REQUIRED = [
    ("order", "STT"),
    ("roomName", "Tên phòng"),
    ("roomId", "ID phòng"),
    ("fullName", "Họ và Tên"),
    ("lastName", "Họ"),
    ("firstName", "Tên"),
    ("phone", "Số điện thoại"),
]


def _as_int(v: Any) -> Optional[int]:
    try:
        return int(str(v).strip())
    except (TypeError, ValueError):
        return None


def _check_account(db: Session, row: dict[str, str], errors: dict[str, str]) -> None:
    phone = row.get("phone", "")
    if not is_valid_phone(phone):
        errors["phone"] = "Số điện thoại không hợp lệ"
        return

    user = find_user_by_phone(db, phone)
    if user is None:
        if not row.get("password"):
            errors["password"] = "Tài khoản không tồn tại, vui lòng thêm mật khẩu để tạo tài khoản"
        elif validate_sign_up(
            first_name=row.get("firstName"),
            last_name=row.get("lastName"),
            email=row.get("email"),
            password=row.get("password"),
            phone=phone,
        ):
            errors["account"] = "Tài khoản không tồn tại, dữ liệu tạo tài khoản mới không hợp lệ"
        elif find_user_by_email(db, row.get("email", "")) is not None:
            errors["email"] = (
                "Tài khoản không tồn tại, email cung cấp đã tồn tại trong hệ thống, vui lòng nhập email mới"
            )
    elif user.is_locked:
        errors["phone"] = "Tài khoản đã bị khóa, vui lòng liên hệ quản trị viên"


def _check_room(
    db: Session, row: dict[str, str], errors: dict[str, str], owner_id: Optional[int] = None
) -> Optional[Room]:
    room_id = _as_int(row.get("roomId"))
    room = db.get(Room, room_id) if room_id is not None else None
    floor, motel = room_floor_motel(db, room) if room is not None else (None, None)
    # rooms of another host are reported as missing
    if room is None or (owner_id is not None and (motel is None or motel.owner_id != owner_id)):
        errors["roomId"] = "Phòng không tồn tại"
        return None

    if "roomName" not in errors and room.name.strip() != row.get("roomName", "").strip():
        errors["roomName"] = "Tên phòng tìm thấy và tên phòng trong bảng dữ liệu không trùng nhau"
    if room.status != ROOM_AVAILABLE:
        errors["roomStatus"] = "Phòng hiện không còn trống"

    if floor is None:
        errors["floor"] = "Tầng không hợp lệ"
    elif motel is None:
        errors["motel"] = "Tòa nhà không hợp lệ"

    if has_waiting_deposit(db, room.id):
        errors["transaction"] = "Phòng đã có giao dịch cọc trước đó, vui lòng kiểm tra lại"
    return room


def validate_row(
    db: Session,
    row: dict[str, str],
    *,
    mode: str,
    today: date,
    seen_rooms: Optional[set[str]] = None,
    owner_id: Optional[int] = None,
) -> dict[str, str]:
    """All problems with one spreadsheet row, keyed by field."""
    errors: dict[str, str] = {}

    for key, label in REQUIRED:
        if not str(row.get(key) or "").strip():
            errors[key] = f"{label} không được để trống"

    if "phone" not in errors:
        _check_account(db, row, errors)

    room = None
    if "roomId" not in errors:
        room = _check_room(db, row, errors, owner_id)
        if seen_rooms is not None and room is not None:
            if str(room.id) in seen_rooms:
                errors["roomId"] = "Phòng bị trùng lặp trong bảng dữ liệu"
            seen_rooms.add(str(room.id))

    rental_period = _as_int(row.get("rentalPeriod"))
    if not str(row.get("rentalPeriod") or "").strip():
        errors["rentalPeriod"] = "Số tháng thuê không được để trống"
    elif rental_period is None or rental_period < 1:
        errors["rentalPeriod"] = "Số tháng thuê không hợp lệ"
    elif room is not None and rental_period < int(room.minimum_months or 1):
        errors["rentalPeriod"] = "Số tháng thuê không được nhỏ hơn số tháng thuê tối thiểu của phòng"

    email = row.get("email", "")
    if not email:
        errors.setdefault("email", "Email không được để trống")
    elif not is_valid_email(email):
        errors["email"] = "Email không hợp lệ"

    raw_date = row.get("checkInTime", "")
    if not raw_date:
        errors["checkInTime"] = "Thời gian bắt đầu thuê không được để trống"
    else:
        try:
            check_in = parse_check_in(raw_date)
        except BusinessRuleError as e:
            errors["checkInTime"] = e.message
        else:
            if mode == MODE_DEPOSIT:
                msg = deposit_window_error(check_in, today)
            else:
                msg = rent_window_error(check_in, rental_period or 1, today)
            if msg:
                errors["checkInTime"] = msg

    return errors


def validate_rows(
    db: Session,
    rows: list[dict[str, str]],
    *,
    mode: str,
    today: Optional[date] = None,
    owner_id: Optional[int] = None,
) -> list[dict[str, Any]]:
    """[{row: 1-based index, errors: {...}}] for every rejected row."""
    today = today or local_today()
    seen: set[str] = set()
    out: list[dict[str, Any]] = []
    for i, row in enumerate(rows):
        errs = validate_row(db, row, mode=mode, today=today, seen_rooms=seen, owner_id=owner_id)
        if errs:
            out.append({"row": i + 1, "errors": errs})
    return out


def process_rows(
    db: Session,
    rows: list[dict[str, str]],
    *,
    mode: str,
    bank_id: Optional[int],
    admin_user_id: Optional[int],
    today: Optional[date] = None,
) -> dict[str, Any]:
    """
    Create one contract per row, committing row by row.

    A row that fails (the room was taken since validation, ...) is rolled back
    and reported; the remaining rows still go through.
    """
    handler: Callable[..., Any] = quick_deposit if mode == MODE_DEPOSIT else quick_rent
    created: list[int] = []
    failed: list[dict[str, Any]] = []

    for i, row in enumerate(rows):
        try:
            job = handler(
                db,
                phone=row.get("phone"),
                check_in=row.get("checkInTime"),
                room_id=row.get("roomId"),
                rental_period=_as_int(row.get("rentalPeriod")) or 1,
                bank_id=bank_id,
                first_name=row.get("firstName") or None,
                last_name=row.get("lastName") or None,
                email=row.get("email") or None,
                password=row.get("password") or None,
                confirm_password=row.get("password") or None,
                today=today,
            )
            db.commit()
            created.append(int(job.id))
        except BusinessRuleError as e:
            db.rollback()
            failed.append({"row": i + 1, "error": e.message})
            log.warning("import.row_failed", extra={"row": i + 1, "mode": mode, "error": e.message})
        except SQLAlchemyError as e:
            db.rollback()
            failed.append({"row": i + 1, "error": str(e)})
            log.exception("import.row_db_error", extra={"row": i + 1, "mode": mode})

    if admin_user_id:
        label = "đặt cọc" if mode == MODE_DEPOSIT else "thuê phòng"
        notify(
            db,
            user_id=admin_user_id,
            title=f"Kết quả nhập dữ liệu {label}",
            content=f"Thành công {len(created)}/{len(rows)} dòng.",
            tag="Import",
            content_tag=f"bulk-{mode}",
        )
        db.commit()

    log.info("import.finished", extra={"mode": mode, "created_count": len(created), "failed_count": len(failed)})
    return {"created_job_ids": created, "failed": failed}
