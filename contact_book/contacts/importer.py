"""Import reconciliation: classify candidate rows before they touch the store.

Each candidate row is classified, in order, as exactly one of:

- invalid: name or phone blank after trimming (reason recorded, batch continues)
- duplicate: phone already stored, or accepted earlier in the same batch
- updated: overwrite mode only, phone already stored; the stored record is
  rewritten with the row's other fields
- accepted: staged for creation

``reconcile`` is pure. Stores call it inside their critical section with the
phones they currently hold and then apply the returned plan as one batch.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping

from .errors import ValidationFailed
from .models import ContactPatch, NewContact

logger = logging.getLogger(__name__)

IMPORT_MODES = ("skip", "overwrite")
DEFAULT_ERROR_LIMIT = 10

# Keys accepted on candidate rows, mapped to NewContact attributes.
CANDIDATE_KEYS = {
    "name": "name",
    "phone": "phone",
    "email": "email",
    "socialAccount": "social_account",
    "social_account": "social_account",
    "address": "address",
    "favorite": "favorite",
}


@dataclass(slots=True)
class ImportReport:
    """Outcome counts of an import batch."""

    imported: int = 0
    duplicates: int = 0
    errors: int = 0
    updated: int = 0
    details: List[str] = field(default_factory=list)
    mode: str = "skip"

    @property
    def message(self) -> str:
        parts = [
            f"{self.imported} imported",
            f"{self.duplicates} duplicates skipped",
            f"{self.errors} errors",
        ]
        if self.mode == "overwrite":
            parts.insert(1, f"{self.updated} updated")
        return "Import finished: " + ", ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "imported": self.imported,
            "duplicates": self.duplicates,
            "errors": self.errors,
            "message": self.message,
        }
        if self.mode == "overwrite":
            payload["updated"] = self.updated
        if self.details:
            payload["details"] = list(self.details)
        return payload


@dataclass(slots=True)
class ImportPlan:
    """Staged changes produced by ``reconcile``."""

    creates: List[NewContact] = field(default_factory=list)
    overwrites: Dict[str, ContactPatch] = field(default_factory=dict)
    report: ImportReport = field(default_factory=ImportReport)


def candidate_from_row(row: Mapping[str, Any]) -> NewContact:
    """Build an unvalidated NewContact from a loosely-typed row mapping."""
    values: Dict[str, Any] = {}
    for key, attr in CANDIDATE_KEYS.items():
        if key in row and row[key] is not None:
            values.setdefault(attr, row[key])
    return NewContact(
        name=values.get("name"),
        phone=values.get("phone"),
        email=values.get("email"),
        social_account=values.get("social_account"),
        address=values.get("address"),
        favorite=values.get("favorite", False),
    )


def reconcile(
    rows: Iterable[Any],
    existing_phones: Iterable[str],
    *,
    mode: str = "skip",
    error_limit: int = DEFAULT_ERROR_LIMIT,
) -> ImportPlan:
    """Classify candidate rows against the phones already in the store.

    Args:
        rows: Candidate rows in input order (mappings or NewContact objects).
        existing_phones: Phones currently stored.
        mode: "skip" leaves stored contacts alone; "overwrite" updates them.
        error_limit: Maximum number of row error descriptions to keep.

    Returns:
        ImportPlan with staged creates / overwrites and the report counts.
    """
    if mode not in IMPORT_MODES:
        raise ValueError(f"Unknown import mode {mode!r}")

    stored = set(existing_phones)
    seen: set[str] = set()
    plan = ImportPlan(report=ImportReport(mode=mode))
    report = plan.report

    for index, row in enumerate(rows, start=1):
        try:
            if isinstance(row, NewContact):
                candidate = row.normalized()
            elif isinstance(row, Mapping):
                candidate = candidate_from_row(row).normalized()
            else:
                raise ValidationFailed("row", "Row is not an object")
        except ValidationFailed as exc:
            report.errors += 1
            if len(report.details) < error_limit:
                report.details.append(f"Row {index}: {_describe(exc)}")
            logger.debug("[ContactImport] Row %s invalid: %s", index, exc)
            continue

        phone = candidate.phone
        if phone in seen:
            report.duplicates += 1
            logger.debug("[ContactImport] Row %s repeats phone %s within batch", index, phone)
            continue
        seen.add(phone)

        if phone in stored:
            if mode == "overwrite":
                plan.overwrites[phone] = ContactPatch.from_new(candidate)
                report.updated += 1
            else:
                report.duplicates += 1
                logger.debug("[ContactImport] Row %s skipped, phone %s exists", index, phone)
            continue

        plan.creates.append(candidate)
        report.imported += 1

    return plan


def _describe(exc: ValidationFailed) -> str:
    if exc.field in ("name", "phone"):
        return "missing name or phone"
    return str(exc)
