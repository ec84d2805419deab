"""Filtering, ordering and pagination for contact listings.

The file backend runs these functions over its in-memory collection; the SQL
backend translates the same ContactQuery into a statement and reuses
``normalize`` so both return identical page metadata.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List

from .models import Contact

MAX_OFFSET = 2**63 - 1


@dataclass(slots=True)
class ContactQuery:
    """List parameters as received from the caller."""

    query: str = ""
    favorite_only: bool = False
    page: int = 1
    page_size: int = 0

    def normalize(self, default_page_size: int = 10, max_page_size: int = 100) -> "ContactQuery":
        """Clamp page and page size so the offset is never negative."""
        page = self.page if self.page and self.page >= 1 else 1
        page_size = self.page_size if self.page_size and self.page_size >= 1 else default_page_size
        page_size = min(page_size, max_page_size)
        # SQL backends bind OFFSET as a signed 64-bit integer.
        page = min(page, MAX_OFFSET // page_size)
        return ContactQuery(
            query=(self.query or "").strip(),
            favorite_only=bool(self.favorite_only),
            page=page,
            page_size=page_size,
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass(slots=True)
class QueryResult:
    items: List[Contact] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 10

    @property
    def total_pages(self) -> int:
        if self.total == 0:
            return 0
        return -(-self.total // self.page_size)


def filter_contacts(contacts: Iterable[Contact], query: ContactQuery) -> List[Contact]:
    return [
        contact
        for contact in contacts
        if contact.matches(query.query)
        and (not query.favorite_only or contact.favorite)
    ]


def sort_contacts(contacts: List[Contact]) -> List[Contact]:
    """Most recently updated first; sorted() is stable so ties keep insertion order."""
    return sorted(contacts, key=lambda contact: contact.updated_at, reverse=True)


def run_query(contacts: Iterable[Contact], query: ContactQuery) -> QueryResult:
    """Filter, sort and paginate a collection.

    ``query`` must already be normalized. ``total`` is the size of the
    filtered set, not of the whole collection.
    """
    matched = sort_contacts(filter_contacts(contacts, query))
    offset = query.offset
    page_items = matched[offset:offset + query.page_size]
    return QueryResult(
        items=[contact.copy() for contact in page_items],
        total=len(matched),
        page=query.page,
        page_size=query.page_size,
    )
