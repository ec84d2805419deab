"""API Routers Package.

Routers:
- contacts.py: contact CRUD, listing, export and import

Usage in main.py:
    from api.routers import contacts_router

    app.include_router(contacts_router, prefix="/api/contacts", tags=["contacts"])
"""

from .contacts import router as contacts_router

__all__ = [
    "contacts_router",
]
