"""Tests for import reconciliation (classification only, no storage)."""
from __future__ import annotations

import pytest

from contact_book.contacts.importer import ImportReport, candidate_from_row, reconcile
from contact_book.contacts.models import NewContact


class TestReconcile:
    def test_classifies_invalid_duplicate_and_accepted(self):
        plan = reconcile(
            [
                {"name": "A", "phone": "1"},
                {"name": "", "phone": "2"},
                {"name": "B", "phone": "1"},
            ],
            existing_phones=[],
        )

        report = plan.report
        assert (report.imported, report.duplicates, report.errors) == (1, 1, 1)
        assert [c.name for c in plan.creates] == ["A"]
        assert report.details == ["Row 2: missing name or phone"]

    def test_existing_phone_is_duplicate_in_skip_mode(self):
        plan = reconcile([{"name": "A", "phone": "55"}], existing_phones=["55"])
        assert plan.creates == []
        assert plan.overwrites == {}
        assert plan.report.duplicates == 1

    def test_existing_phone_is_update_in_overwrite_mode(self):
        plan = reconcile(
            [{"name": "A", "phone": "55", "email": " a@x.io "}],
            existing_phones=["55"],
            mode="overwrite",
        )
        assert plan.report.updated == 1
        assert plan.report.duplicates == 0
        patch = plan.overwrites["55"]
        assert patch.name == "A"
        assert patch.email == "a@x.io"
        assert patch.phone is None

    def test_repeat_within_batch_is_duplicate_even_in_overwrite_mode(self):
        plan = reconcile(
            [{"name": "A", "phone": "55"}, {"name": "B", "phone": "55"}],
            existing_phones=["55"],
            mode="overwrite",
        )
        assert plan.report.updated == 1
        assert plan.report.duplicates == 1

    def test_whitespace_only_fields_are_invalid(self):
        plan = reconcile(
            [{"name": "  ", "phone": "9"}, {"name": "X", "phone": " \t"}, {"phone": "3"}],
            existing_phones=[],
        )
        assert plan.report.errors == 3
        assert plan.report.imported == 0

    def test_non_object_rows_are_invalid(self):
        plan = reconcile(["just a string", None], existing_phones=[])
        assert plan.report.errors == 2
        assert plan.report.details[0].startswith("Row 1:")

    def test_error_details_are_bounded(self):
        rows = [{"name": "", "phone": ""} for _ in range(25)]
        plan = reconcile(rows, existing_phones=[], error_limit=10)
        assert plan.report.errors == 25
        assert len(plan.report.details) == 10
        assert plan.report.details[-1].startswith("Row 10:")

    def test_phone_matched_after_trimming(self):
        plan = reconcile([{"name": "A", "phone": " 77 "}], existing_phones=["77"])
        assert plan.report.duplicates == 1

    def test_accepts_new_contact_objects(self):
        plan = reconcile([NewContact(name=" Z ", phone="8")], existing_phones=[])
        assert plan.creates[0].name == "Z"

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValueError):
            reconcile([], existing_phones=[], mode="merge")


class TestCandidateFromRow:
    def test_favorite_coercion(self):
        truthy = ["true", "1", 1, True, "yes", "是", "Y"]
        falsy = ["false", "0", 0, False, "no", "否", None, ""]
        assert all(candidate_from_row({"name": "n", "phone": "p", "favorite": v}).normalized().favorite for v in truthy)
        assert not any(candidate_from_row({"name": "n", "phone": "p", "favorite": v}).normalized().favorite for v in falsy)

    def test_accepts_snake_case_social_account(self):
        candidate = candidate_from_row({"name": "n", "phone": "p", "social_account": "@n"})
        assert candidate.social_account == "@n"


class TestImportReport:
    def test_to_dict_omits_empty_details_and_update_count(self):
        payload = ImportReport(imported=2).to_dict()
        assert payload["imported"] == 2
        assert "details" not in payload
        assert "updated" not in payload
        assert payload["message"].startswith("Import finished: 2 imported")

    def test_overwrite_mode_reports_updates(self):
        payload = ImportReport(updated=3, mode="overwrite").to_dict()
        assert payload["updated"] == 3
        assert "3 updated" in payload["message"]
