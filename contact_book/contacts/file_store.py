"""JSON-file contact store.

File layout:
    {"nextId": <int>, "items": [<contact>, ...]}

``nextId`` only ever grows, so ids of deleted contacts are never handed out
again. The document is re-read on every operation and rewritten through a
temporary sibling file plus ``os.replace`` so a failed write leaves the
previous document intact. One process owns the file; a ``threading.Lock``
serializes every read-modify-write inside it.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

from .errors import ContactNotFound, DuplicatePhone, StorageFailure
from .importer import ImportReport, reconcile
from .models import Contact, ContactPatch, NewContact, now_utc
from .query import ContactQuery, QueryResult, run_query
from .store import ContactStore

logger = logging.getLogger(__name__)


@dataclass
class _Document:
    next_id: int = 1
    items: List[Contact] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "nextId": self.next_id,
            "items": [contact.to_dict() for contact in self.items],
        }

    def index_of(self, contact_id: int) -> int:
        for idx, contact in enumerate(self.items):
            if contact.id == contact_id:
                return idx
        raise ContactNotFound(contact_id)

    def phone_owner(self, phone: str) -> Optional[Contact]:
        return next((c for c in self.items if c.phone == phone), None)


class JsonFileContactStore(ContactStore):
    """Contact store persisted as one JSON document."""

    backend = "file"

    def __init__(self, path: Path | str, **options: Any) -> None:
        super().__init__(**options)
        self.path = Path(path)
        self._lock = threading.Lock()

    # --- public operations ---

    def create(self, fields: NewContact) -> Contact:
        candidate = fields.normalized()
        with self._lock:
            doc = self._load()
            if doc.phone_owner(candidate.phone) is not None:
                raise DuplicatePhone(candidate.phone)
            contact = candidate.build(doc.next_id)
            doc.next_id += 1
            doc.items.append(contact)
            self._save(doc)
        logger.info("[Contacts] Created contact %s", contact.id)
        return contact.copy()

    def get(self, contact_id: int) -> Contact:
        with self._lock:
            doc = self._load()
        return doc.items[doc.index_of(contact_id)].copy()

    def update(self, contact_id: int, patch: ContactPatch) -> Contact:
        changes = patch.normalized()
        with self._lock:
            doc = self._load()
            idx = doc.index_of(contact_id)
            if changes.phone is not None:
                owner = doc.phone_owner(changes.phone)
                if owner is not None and owner.id != contact_id:
                    raise DuplicatePhone(changes.phone)
            updated = changes.apply(doc.items[idx])
            doc.items[idx] = updated
            self._save(doc)
        logger.info("[Contacts] Updated contact %s", contact_id)
        return updated.copy()

    def remove(self, contact_id: int) -> None:
        with self._lock:
            doc = self._load()
            del doc.items[doc.index_of(contact_id)]
            self._save(doc)
        logger.info("[Contacts] Deleted contact %s", contact_id)

    def all(self) -> List[Contact]:
        with self._lock:
            doc = self._load()
        return [contact.copy() for contact in doc.items]

    def _search(self, query: ContactQuery) -> QueryResult:
        with self._lock:
            doc = self._load()
        return run_query(doc.items, query)

    def _import(self, rows: List[Any], mode: str, error_limit: int) -> ImportReport:
        with self._lock:
            doc = self._load()
            plan = reconcile(
                rows,
                (contact.phone for contact in doc.items),
                mode=mode,
                error_limit=error_limit,
            )
            stamp = now_utc()
            for phone, patch in plan.overwrites.items():
                idx = doc.index_of(doc.phone_owner(phone).id)
                doc.items[idx] = patch.apply(doc.items[idx], stamp)
            for candidate in plan.creates:
                doc.items.append(candidate.build(doc.next_id, stamp))
                doc.next_id += 1
            if plan.creates or plan.overwrites:
                self._save(doc)
        logger.info("[ContactImport] %s", plan.report.message)
        return plan.report

    def describe(self) -> str:
        return f"file:{self.path}"

    # --- persistence helpers (call with the lock held) ---

    def _load(self) -> _Document:
        if not self.path.exists():
            doc = _Document()
            self._save(doc)
            return doc

        try:
            raw = self.path.read_bytes()
        except OSError as exc:
            logger.error("[Contacts] Could not read %s: %s", self.path, exc)
            raise StorageFailure(f"Could not read contact file {self.path}: {exc}") from exc

        # Any unreadable entry invalidates the whole document; saving a
        # partial list would drop contacts without a backup.
        try:
            parsed = json.loads(raw.decode("utf-8") or "{}")
            if not isinstance(parsed, dict):
                raise ValueError("top-level value is not an object")
            raw_items = parsed.get("items", [])
            if not isinstance(raw_items, list):
                raise ValueError("'items' is not a list")
            items = [Contact.from_dict(entry) for entry in raw_items]
        except (AttributeError, KeyError, OverflowError, TypeError, ValueError) as exc:
            return self._reset_corrupt(exc)

        max_id = max((contact.id for contact in items), default=0)
        next_id = parsed.get("nextId")
        if not isinstance(next_id, int) or isinstance(next_id, bool) or next_id <= max_id:
            next_id = max_id + 1
        return _Document(next_id=next_id, items=items)

    def _reset_corrupt(self, exc: Exception) -> _Document:
        backup = self.path.with_name(self.path.name + ".corrupt")
        logger.warning(
            "[Contacts] %s is not a valid contact document (%s); "
            "moving it to %s and starting empty",
            self.path,
            exc,
            backup,
        )
        try:
            os.replace(self.path, backup)
        except OSError as move_exc:
            raise StorageFailure(f"Could not reset corrupt file {self.path}: {move_exc}") from move_exc
        doc = _Document()
        self._save(doc)
        return doc

    def _save(self, doc: _Document) -> None:
        directory = self.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=directory
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(doc.to_dict(), handle, indent=2, ensure_ascii=False)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            logger.error("[Contacts] Could not write %s: %s", self.path, exc)
            raise StorageFailure(f"Could not write contact file {self.path}: {exc}") from exc
