"""Contact storage, search and import module."""
from .errors import (
    ContactError,
    ContactNotFound,
    DuplicatePhone,
    StorageFailure,
    ValidationFailed,
)
from .importer import ImportPlan, ImportReport, reconcile
from .models import Contact, ContactPatch, NewContact
from .query import ContactQuery, QueryResult, run_query
from .store import ContactStore, build_store

__all__ = [
    # Errors
    "ContactError",
    "ContactNotFound",
    "DuplicatePhone",
    "StorageFailure",
    "ValidationFailed",
    # Records
    "Contact",
    "ContactPatch",
    "NewContact",
    # Query
    "ContactQuery",
    "QueryResult",
    "run_query",
    # Import
    "ImportPlan",
    "ImportReport",
    "reconcile",
    # Storage
    "ContactStore",
    "build_store",
]
