"""Storage-agnostic contact store interface and backend selection.

Backends:
    file: a single JSON document {"nextId": int, "items": [...]} guarded by an
          in-process lock (see file_store.py)
    sql:  a relational table with a UNIQUE phone column (see sql_store.py)

Environment Variables (via contact_book.config):
    CONTACTS_STORAGE: "file" (default) or "sql"
    CONTACTS_DATA_FILE: JSON document path for the file backend
    CONTACTS_DATABASE_URL: SQLAlchemy URL for the sql backend
"""
from __future__ import annotations

import abc
from typing import Any, Iterable, List, Optional

from ..config import ConfigError, Settings
from .importer import DEFAULT_ERROR_LIMIT, ImportReport
from .models import Contact, ContactPatch, NewContact
from .query import ContactQuery, QueryResult


class ContactStore(abc.ABC):
    """Exclusive owner of the contact collection.

    Every mutating call is durably applied before it returns and leaves the
    collection untouched when it raises.
    """

    backend = "abstract"

    def __init__(
        self,
        *,
        default_page_size: int = 10,
        max_page_size: int = 100,
        import_mode: str = "skip",
        import_error_limit: int = DEFAULT_ERROR_LIMIT,
    ) -> None:
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size
        self.import_mode = import_mode
        self.import_error_limit = import_error_limit

    @abc.abstractmethod
    def create(self, fields: NewContact) -> Contact:
        """Validate and persist a new contact. Raises ValidationFailed / DuplicatePhone."""

    @abc.abstractmethod
    def get(self, contact_id: int) -> Contact:
        """Return a copy of the contact. Raises ContactNotFound."""

    @abc.abstractmethod
    def update(self, contact_id: int, patch: ContactPatch) -> Contact:
        """Apply a partial update. Raises ContactNotFound / ValidationFailed / DuplicatePhone."""

    @abc.abstractmethod
    def remove(self, contact_id: int) -> None:
        """Hard-delete a contact. Raises ContactNotFound."""

    @abc.abstractmethod
    def all(self) -> List[Contact]:
        """Every stored contact in insertion order."""

    @abc.abstractmethod
    def _search(self, query: ContactQuery) -> QueryResult:
        """Run an already-normalized query."""

    @abc.abstractmethod
    def _import(self, rows: List[Any], mode: str, error_limit: int) -> ImportReport:
        """Reconcile and apply an import batch atomically."""

    def list(self, query: Optional[ContactQuery] = None) -> QueryResult:
        normalized = (query or ContactQuery()).normalize(
            self.default_page_size, self.max_page_size
        )
        return self._search(normalized)

    def import_contacts(
        self,
        rows: Iterable[Any],
        *,
        mode: Optional[str] = None,
    ) -> ImportReport:
        """Import candidate rows; bad rows are reported, not raised."""
        return self._import(list(rows), mode or self.import_mode, self.import_error_limit)

    def describe(self) -> str:
        return self.backend


def build_store(settings: Settings) -> ContactStore:
    """Instantiate the backend named in settings."""

    options = dict(
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
        import_mode=settings.import_mode,
        import_error_limit=settings.import_error_limit,
    )
    if settings.storage == "file":
        from .file_store import JsonFileContactStore

        return JsonFileContactStore(settings.data_file, **options)
    if settings.storage == "sql":
        from .sql_store import SqlContactStore

        return SqlContactStore(settings.database_url, **options)
    raise ConfigError(f"Unknown storage backend {settings.storage!r}")
