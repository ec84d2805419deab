"""Contact record and the payloads used to create and patch it."""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .errors import ValidationFailed


SEARCHABLE_FIELDS = ("name", "phone", "email", "social_account", "address")
OPTIONAL_TEXT_FIELDS = ("email", "social_account", "address")

TRUTHY_STRINGS = {"1", "true", "yes", "y", "是"}


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def clean_text(value: Any) -> str:
    """Return value as trimmed text; None becomes an empty string."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # Spreadsheets hand back numeric phone cells as floats.
        value = int(value)
    return str(value).strip()


def coerce_bool(value: Any) -> bool:
    """Interpret JSON / spreadsheet favorite values as a boolean."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in TRUTHY_STRINGS


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        # Older files stored epoch milliseconds.
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str) and value:
        parsed = datetime.fromisoformat(value)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return now_utc()


def _require(field_name: str, value: Any) -> str:
    text = clean_text(value)
    if not text:
        raise ValidationFailed(field_name)
    return text


@dataclass(slots=True)
class Contact:
    """A stored contact. Instances handed to callers are always copies."""

    id: int
    name: str
    phone: str
    email: str = ""
    social_account: str = ""
    address: str = ""
    favorite: bool = False
    created_at: datetime = None  # type: ignore[assignment]
    updated_at: datetime = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.created_at is None:
            self.created_at = now_utc()
        if self.updated_at is None:
            self.updated_at = self.created_at

    def copy(self) -> "Contact":
        return replace(self)

    def matches(self, needle: str) -> bool:
        """Case-insensitive substring match against every searchable field."""
        if not needle:
            return True
        lowered = needle.lower()
        return any(
            lowered in (getattr(self, name) or "").lower()
            for name in SEARCHABLE_FIELDS
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the API / file representation (camelCase keys)."""
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "socialAccount": self.social_account,
            "address": self.address,
            "favorite": self.favorite,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Contact":
        created_raw = data.get("createdAt") or data.get("updatedAt")
        created = _parse_timestamp(created_raw)
        updated = _parse_timestamp(data.get("updatedAt") or created_raw)
        return cls(
            id=int(data["id"]),
            name=clean_text(data.get("name")),
            phone=clean_text(data.get("phone")),
            email=clean_text(data.get("email")),
            social_account=clean_text(data.get("socialAccount")),
            address=clean_text(data.get("address")),
            favorite=coerce_bool(data.get("favorite")),
            created_at=created,
            updated_at=max(updated, created),
        )


@dataclass(slots=True)
class NewContact:
    """Fields supplied when creating a contact."""

    name: str
    phone: str
    email: str = ""
    social_account: str = ""
    address: str = ""
    favorite: bool = False

    def normalized(self) -> "NewContact":
        """Return a trimmed copy, raising ValidationFailed on blank name/phone."""
        return NewContact(
            name=_require("name", self.name),
            phone=_require("phone", self.phone),
            email=clean_text(self.email),
            social_account=clean_text(self.social_account),
            address=clean_text(self.address),
            favorite=coerce_bool(self.favorite),
        )

    def build(self, contact_id: int, when: Optional[datetime] = None) -> Contact:
        stamp = when or now_utc()
        return Contact(
            id=contact_id,
            name=self.name,
            phone=self.phone,
            email=self.email,
            social_account=self.social_account,
            address=self.address,
            favorite=self.favorite,
            created_at=stamp,
            updated_at=stamp,
        )


@dataclass(slots=True)
class ContactPatch:
    """Partial update. A field left as None is absent and stays untouched."""

    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    social_account: Optional[str] = None
    address: Optional[str] = None
    favorite: Optional[bool] = None

    @classmethod
    def from_new(cls, fields: NewContact) -> "ContactPatch":
        """Patch that rewrites every field except phone (used by overwrite imports)."""
        return cls(
            name=fields.name,
            email=fields.email,
            social_account=fields.social_account,
            address=fields.address,
            favorite=fields.favorite,
        )

    def normalized(self) -> "ContactPatch":
        return ContactPatch(
            name=None if self.name is None else _require("name", self.name),
            phone=None if self.phone is None else _require("phone", self.phone),
            email=None if self.email is None else clean_text(self.email),
            social_account=None if self.social_account is None else clean_text(self.social_account),
            address=None if self.address is None else clean_text(self.address),
            favorite=None if self.favorite is None else coerce_bool(self.favorite),
        )

    def apply(self, contact: Contact, when: Optional[datetime] = None) -> Contact:
        """Return a patched copy of contact with updated_at refreshed."""
        updated = contact.copy()
        for name in ("name", "phone", "email", "social_account", "address", "favorite"):
            value = getattr(self, name)
            if value is not None:
                setattr(updated, name, value)
        stamp = when or now_utc()
        updated.updated_at = max(stamp, updated.created_at)
        return updated
