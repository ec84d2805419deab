"""Error taxonomy for contact storage operations."""
from __future__ import annotations


class ContactError(RuntimeError):
    """Base class for contact store failures."""


class ValidationFailed(ContactError):
    """A required field is missing or blank."""

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"Field '{field}' is required and cannot be blank.")


class DuplicatePhone(ContactError):
    """Another contact already uses this phone number."""

    def __init__(self, phone: str) -> None:
        self.phone = phone
        super().__init__(f"A contact with phone '{phone}' already exists.")


class ContactNotFound(ContactError):
    """No contact has this id."""

    def __init__(self, contact_id: int) -> None:
        self.contact_id = contact_id
        super().__init__(f"Contact {contact_id} not found.")


class StorageFailure(ContactError):
    """The backing store could not be read or written."""
