"""Excel (xlsx) export and import for contacts."""
from __future__ import annotations

from io import BytesIO
from typing import Any, Dict, Iterable, List, Optional

from openpyxl import Workbook, load_workbook
from openpyxl.utils import get_column_letter

from .models import Contact, clean_text

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
SHEET_TITLE = "Contacts"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# (header, width) in export order
EXPORT_COLUMNS = [
    ("Name", 20),
    ("Phone", 15),
    ("Email", 25),
    ("Social Account", 20),
    ("Address", 30),
    ("Favorite", 10),
    ("Created At", 20),
    ("Updated At", 20),
]

YES, NO = "Yes", "No"

# Header text (lowercased) -> candidate key used by the import reconciler.
HEADER_ALIASES = {
    "name": "name",
    "姓名": "name",
    "phone": "phone",
    "电话": "phone",
    "手机": "phone",
    "email": "email",
    "邮箱": "email",
    "social account": "socialAccount",
    "socialaccount": "socialAccount",
    "社交账号": "socialAccount",
    "address": "address",
    "地址": "address",
    "favorite": "favorite",
    "收藏": "favorite",
}


class SpreadsheetError(ValueError):
    """Raised when an uploaded workbook cannot be read."""


def export_rows(contacts: Iterable[Contact]) -> List[List[str]]:
    """Rows in export column order, sorted by name."""
    rows = []
    for contact in sorted(contacts, key=lambda c: (c.name.lower(), c.id)):
        rows.append([
            contact.name,
            contact.phone,
            contact.email,
            contact.social_account,
            contact.address,
            YES if contact.favorite else NO,
            contact.created_at.strftime(TIMESTAMP_FORMAT),
            contact.updated_at.strftime(TIMESTAMP_FORMAT),
        ])
    return rows


def export_workbook(contacts: Iterable[Contact]) -> bytes:
    """Render contacts as an xlsx document."""
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE

    for col, (header, width) in enumerate(EXPORT_COLUMNS, 1):
        ws.cell(row=1, column=col, value=header)
        ws.column_dimensions[get_column_letter(col)].width = width

    for row_idx, values in enumerate(export_rows(contacts), 2):
        for col, value in enumerate(values, 1):
            if value == "":
                continue
            # Keep user text literal; openpyxl treats a leading "=" as a formula.
            ws.cell(row=row_idx, column=col, value=value).data_type = "s"

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def _header_key(value: Any) -> Optional[str]:
    if value is None:
        return None
    return HEADER_ALIASES.get(clean_text(value).lower())


def read_workbook(data: bytes) -> List[Dict[str, Any]]:
    """Read the first sheet of an xlsx document into candidate rows.

    The first row is treated as headers; unknown columns are ignored and
    fully blank rows are skipped. Values are returned as found so the import
    reconciler reports blank names and phones per row.
    """
    try:
        wb = load_workbook(BytesIO(data), read_only=True, data_only=True)
    except Exception as exc:  # openpyxl raises zipfile / KeyError / InvalidFileException
        raise SpreadsheetError(f"Could not read workbook: {exc}") from exc

    try:
        ws = wb.worksheets[0] if wb.worksheets else None
        if ws is None:
            return []
        rows = ws.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return []
        keys = [_header_key(value) for value in header]
        if "name" not in keys and "phone" not in keys:
            raise SpreadsheetError("Workbook has no Name or Phone column.")

        candidates: List[Dict[str, Any]] = []
        for values in rows:
            if all(value is None or clean_text(value) == "" for value in values):
                continue
            row: Dict[str, Any] = {}
            for key, value in zip(keys, values):
                if key and key not in row:
                    row[key] = value
            candidates.append(row)
        return candidates
    finally:
        wb.close()
