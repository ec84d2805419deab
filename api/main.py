"""FastAPI service for Contact Book."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.dependencies import get_settings, get_store
from api.routers import contacts_router
from contact_book.contacts import ContactStore

logger = logging.getLogger(__name__)


app = FastAPI(
    title="Contact Book API",
    version="0.1.0",
    description="REST interface for managing, searching, exporting and importing contacts.",
)

origins = [origin for origin in get_settings().allowed_origins if origin]

if origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info("[API] CORS enabled for %s", ", ".join(origins))

app.include_router(contacts_router, prefix="/api/contacts", tags=["contacts"])


@app.get("/health")
def health_check(store: ContactStore = Depends(get_store)) -> dict:
    """Health check endpoint with storage configuration status."""
    settings = get_settings()
    return {
        "status": "ok",
        "time": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "storage": store.describe(),
    }
