"""Contacts Router - contact CRUD, search, export and import.

Handles:
- Paginated, searchable listing with favorite filter
- Create / read / partial update / delete
- Excel export
- Bulk import from pre-parsed JSON rows or an uploaded xlsx body
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from api.dependencies import get_store, http_error, serialize_contact
from api.models import ContactCreateRequest, ContactImportRequest, ContactUpdateRequest
from contact_book.contacts import ContactError, ContactQuery, ContactStore
from contact_book.contacts.spreadsheet import (
    XLSX_MEDIA_TYPE,
    SpreadsheetError,
    export_workbook,
    read_workbook,
)

logger = logging.getLogger(__name__)

# Mounted at /api/contacts
router = APIRouter()


# =============================================================================
# Listing
# =============================================================================

@router.get("")
def list_contacts(
    q: str = Query(""),
    favorite_only: bool = Query(False, alias="favoriteOnly"),
    page: int = Query(1),
    page_size: int = Query(0, alias="pageSize"),
    store: ContactStore = Depends(get_store),
) -> dict:
    """List contacts matching q, most recently updated first."""
    try:
        result = store.list(
            ContactQuery(query=q, favorite_only=favorite_only, page=page, page_size=page_size)
        )
    except ContactError as exc:
        raise http_error(exc) from exc
    return {
        "data": [serialize_contact(contact) for contact in result.items],
        "total": result.total,
        "page": result.page,
        "pageSize": result.page_size,
    }


# =============================================================================
# Export / Import (declared before /{contact_id})
# =============================================================================

@router.get("/export")
def export_contacts(store: ContactStore = Depends(get_store)) -> Response:
    """Download every contact as contacts.xlsx."""
    try:
        contacts = store.all()
    except ContactError as exc:
        raise http_error(exc) from exc
    if not contacts:
        raise HTTPException(status_code=404, detail="No contacts to export.")

    logger.info("[API] Exporting %d contacts", len(contacts))
    return Response(
        content=export_workbook(contacts),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": "attachment; filename=contacts.xlsx"},
    )


@router.post("/import")
def import_contacts(
    request: ContactImportRequest,
    store: ContactStore = Depends(get_store),
) -> dict:
    """Import rows; duplicates by phone are skipped (or updated in overwrite mode)."""
    if not isinstance(request.data, list):
        raise HTTPException(status_code=400, detail="Request body must contain a 'data' list.")

    logger.info("[API] Importing %d rows", len(request.data))
    try:
        report = store.import_contacts(request.data, mode=request.mode)
    except ContactError as exc:
        raise http_error(exc) from exc
    return report.to_dict()


@router.post("/import/xlsx")
async def import_contacts_xlsx(
    request: Request,
    mode: str | None = Query(None, pattern="^(skip|overwrite)$"),
    store: ContactStore = Depends(get_store),
) -> dict:
    """Import an xlsx workbook sent as the raw request body."""
    body = await request.body()
    if not body:
        raise HTTPException(status_code=400, detail="Empty upload.")
    try:
        rows = read_workbook(body)
    except SpreadsheetError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    logger.info("[API] Importing %d rows from workbook", len(rows))
    try:
        report = store.import_contacts(rows, mode=mode)
    except ContactError as exc:
        raise http_error(exc) from exc
    return report.to_dict()


# =============================================================================
# Single Contact CRUD
# =============================================================================

@router.post("", status_code=201)
def create_contact(
    request: ContactCreateRequest,
    store: ContactStore = Depends(get_store),
) -> dict:
    try:
        contact = store.create(request.to_new_contact())
    except ContactError as exc:
        raise http_error(exc) from exc
    return serialize_contact(contact)


@router.get("/{contact_id}")
def get_contact(contact_id: int, store: ContactStore = Depends(get_store)) -> dict:
    try:
        return serialize_contact(store.get(contact_id))
    except ContactError as exc:
        raise http_error(exc) from exc


@router.patch("/{contact_id}")
def update_contact(
    contact_id: int,
    request: ContactUpdateRequest,
    store: ContactStore = Depends(get_store),
) -> dict:
    """Partially update a contact; only fields present in the body change."""
    try:
        contact = store.update(contact_id, request.to_patch())
    except ContactError as exc:
        raise http_error(exc) from exc
    return serialize_contact(contact)


@router.delete("/{contact_id}")
def delete_contact(contact_id: int, store: ContactStore = Depends(get_store)) -> dict:
    try:
        store.remove(contact_id)
    except ContactError as exc:
        raise http_error(exc) from exc
    return {"success": True}
