# backend/app/services/spreadsheets.py
from __future__ import annotations

import io
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable

from openpyxl import Workbook, load_workbook
from openpyxl.utils import get_column_letter

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# bulk deposit / bulk rent upload layout, by column position
IMPORT_COLUMNS = [
    "order",
    "roomName",
    "roomId",
    "fullName",
    "lastName",
    "firstName",
    "phone",
    "checkInTime",
    "rentalPeriod",
    "email",
    "password",
]


@dataclass(frozen=True)
class Column:
    header: str
    key: str
    width: int = 15


def cell_text(v: Any) -> str:
    """Normalise a cell to text; Excel dates become DD/MM/YYYY, whole floats lose '.0'."""
    if v is None:
        return ""
    if isinstance(v, datetime):
        return v.strftime("%d/%m/%Y")
    if isinstance(v, date):
        return v.strftime("%d/%m/%Y")
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v).strip()


def read_import_rows(content: bytes) -> list[dict[str, str]]:
    """
    First sheet of an uploaded workbook as a list of row dicts keyed by IMPORT_COLUMNS.

    The header row is skipped; blank rows are dropped.
    """
    wb = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        rows: list[dict[str, str]] = []
        for i, values in enumerate(ws.iter_rows(values_only=True)):
            if i == 0:
                continue
            cells = [cell_text(v) for v in values]
            if not any(cells):
                continue
            cells += [""] * (len(IMPORT_COLUMNS) - len(cells))
            rows.append({k: cells[idx] for idx, k in enumerate(IMPORT_COLUMNS)})
        return rows
    finally:
        wb.close()


def write_workbook(sheet_name: str, columns: list[Column], rows: Iterable[dict[str, Any]]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name
    ws.append([c.header for c in columns])
    for idx, c in enumerate(columns, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = c.width
    for r in rows:
        ws.append([r.get(c.key) for c in columns])

    out = io.BytesIO()
    wb.save(out)
    return out.getvalue()


def errors_workbook(errors: list[dict[str, Any]]) -> bytes:
    """Row-level validation report: one line per rejected row, messages joined 'key: msg; ...'."""
    rows = [
        {"row": e["row"], "errors": "; ".join(f"{k}: {v}" for k, v in e["errors"].items())}
        for e in errors
    ]
    return write_workbook("ValidationErrors", [Column("row", "row", 10), Column("errors", "errors", 120)], rows)
