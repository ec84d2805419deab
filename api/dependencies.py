"""Shared dependencies and helper functions for API routers.

Usage in routers:
    from api.dependencies import get_store, serialize_contact
"""
from __future__ import annotations

from functools import lru_cache

from fastapi import HTTPException

from contact_book.config import Settings, load_settings
from contact_book.contacts import (
    Contact,
    ContactError,
    ContactNotFound,
    ContactStore,
    DuplicatePhone,
    StorageFailure,
    ValidationFailed,
    build_store,
)


# =============================================================================
# Cached Functions
# =============================================================================

@lru_cache
def get_settings() -> Settings:
    """Get application settings (cached)."""
    return load_settings()


@lru_cache
def get_store() -> ContactStore:
    """Get the configured contact store (one instance per process)."""
    return build_store(get_settings())


# =============================================================================
# Serialization Helpers
# =============================================================================

def serialize_contact(contact: Contact) -> dict:
    """Serialize a Contact to API response format."""
    return contact.to_dict()


# =============================================================================
# Error Translation
# =============================================================================

def http_error(exc: ContactError) -> HTTPException:
    """Map a store error onto the matching HTTP status."""
    if isinstance(exc, ContactNotFound):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (ValidationFailed, DuplicatePhone)):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, StorageFailure):
        return HTTPException(status_code=500, detail=f"Storage unavailable: {exc}")
    return HTTPException(status_code=500, detail=str(exc))
