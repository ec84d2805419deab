"""Tests for xlsx export and reading."""
from __future__ import annotations

from datetime import datetime, timezone
from io import BytesIO

import pytest
from openpyxl import Workbook, load_workbook

from contact_book.contacts import NewContact
from contact_book.contacts.file_store import JsonFileContactStore
from contact_book.contacts.models import Contact
from contact_book.contacts.spreadsheet import (
    EXPORT_COLUMNS,
    SpreadsheetError,
    export_rows,
    export_workbook,
    read_workbook,
)


STAMP = datetime(2025, 6, 1, 8, 30, tzinfo=timezone.utc)


def _contact(contact_id, name, phone, **extra):
    return Contact(id=contact_id, name=name, phone=phone, created_at=STAMP, updated_at=STAMP, **extra)


def _workbook_bytes(rows):
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


class TestExport:
    def test_header_and_column_order(self):
        data = export_workbook([
            _contact(2, "Zed", "2", email="z@example.com", favorite=True),
            _contact(1, "amy", "1", address="Elm St"),
        ])

        ws = load_workbook(BytesIO(data)).active
        rows = list(ws.iter_rows(values_only=True))

        assert ws.title == "Contacts"
        assert list(rows[0]) == [header for header, _ in EXPORT_COLUMNS]
        assert list(rows[1]) == [
            "amy", "1", None, None, "Elm St", "No", "2025-06-01 08:30:00", "2025-06-01 08:30:00",
        ]
        assert rows[2][0] == "Zed"
        assert rows[2][5] == "Yes"

    def test_formula_like_text_stays_literal(self):
        data = export_workbook([_contact(1, "=SUM(A1:A2)", "1")])
        ws = load_workbook(BytesIO(data)).active
        assert ws.cell(row=2, column=1).value == "=SUM(A1:A2)"
        assert ws.cell(row=2, column=1).data_type == "s"

    def test_export_rows_sorted_by_name(self):
        rows = export_rows([_contact(1, "b", "1"), _contact(2, "A", "2")])
        assert [row[0] for row in rows] == ["A", "b"]


class TestRead:
    def test_reads_english_headers(self):
        rows = read_workbook(_workbook_bytes([
            ["Name", "Phone", "Email", "Favorite", "Notes"],
            ["Ann", "100", "ann@example.com", "Yes", "ignored"],
        ]))
        assert rows == [{"name": "Ann", "phone": "100", "email": "ann@example.com", "favorite": "Yes"}]

    def test_reads_chinese_headers(self):
        rows = read_workbook(_workbook_bytes([
            ["姓名", "电话", "社交账号", "地址", "收藏"],
            ["张三", 13800000000, "@zhang", "北京", "是"],
        ]))
        assert rows[0]["name"] == "张三"
        assert rows[0]["phone"] == 13800000000
        assert rows[0]["socialAccount"] == "@zhang"
        assert rows[0]["favorite"] == "是"

    def test_skips_blank_rows(self):
        rows = read_workbook(_workbook_bytes([
            ["Name", "Phone"],
            [None, None],
            ["Bo", "5"],
            ["", "  "],
        ]))
        assert rows == [{"name": "Bo", "phone": "5"}]

    def test_rejects_non_workbook(self):
        with pytest.raises(SpreadsheetError):
            read_workbook(b"definitely not a zip file")

    def test_rejects_sheet_without_contact_columns(self):
        with pytest.raises(SpreadsheetError):
            read_workbook(_workbook_bytes([["Foo", "Bar"], ["1", "2"]]))


def test_export_then_import_reproduces_records(tmp_path):
    source = JsonFileContactStore(tmp_path / "source.json")
    source.create(NewContact(name="Ann", phone="0100", email="ann@example.com", favorite=True))
    source.create(NewContact(name="Bob", phone="0200", social_account="@bob", address="Elm St"))
    source.create(NewContact(name="Cy", phone="0300"))

    rows = read_workbook(export_workbook(source.all()))
    target = JsonFileContactStore(tmp_path / "target.json")
    report = target.import_contacts(rows)

    def fingerprint(store):
        return sorted(
            (c.name, c.phone, c.email, c.social_account, c.address, c.favorite)
            for c in store.all()
        )

    assert report.imported == 3
    assert report.errors == 0
    assert fingerprint(target) == fingerprint(source)
