"""Shared Pydantic models for API routers.

Usage in routers:
    from api.models import ContactCreateRequest, ContactUpdateRequest
"""
from __future__ import annotations

from typing import Any, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

from contact_book.contacts import ContactPatch, NewContact


# =============================================================================
# Contact Models
# =============================================================================

class ContactCreateRequest(BaseModel):
    """Request model for creating contacts.

    name and phone default to empty so a missing field reaches the store's
    validation and comes back as a 400 with a readable message.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = ""
    phone: Optional[str] = ""
    email: Optional[str] = ""
    social_account: Optional[str] = Field("", alias="socialAccount")
    address: Optional[str] = ""
    favorite: Optional[bool] = False

    def to_new_contact(self) -> NewContact:
        return NewContact(
            name=self.name or "",
            phone=self.phone or "",
            email=self.email or "",
            social_account=self.social_account or "",
            address=self.address or "",
            favorite=bool(self.favorite),
        )


class ContactUpdateRequest(BaseModel):
    """Request model for partial contact updates. Omitted fields stay untouched."""
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    social_account: Optional[str] = Field(None, alias="socialAccount")
    address: Optional[str] = None
    favorite: Optional[bool] = None

    def to_patch(self) -> ContactPatch:
        """Convert to a ContactPatch.

        An explicit null clears an optional text field; for name or phone it
        becomes a blank value and fails validation.
        """
        supplied = self.model_dump(exclude_unset=True)
        patch = ContactPatch()
        for key in ("name", "phone", "email", "social_account", "address"):
            if key in supplied:
                setattr(patch, key, supplied[key] if supplied[key] is not None else "")
        if supplied.get("favorite") is not None:
            patch.favorite = supplied["favorite"]
        return patch


class ContactImportRequest(BaseModel):
    """Request model for JSON imports (rows already parsed by the client).

    data is validated in the router so a non-list comes back as a 400.
    """
    data: Any = None
    mode: Optional[Literal["skip", "overwrite"]] = None
