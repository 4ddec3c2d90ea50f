from __future__ import annotations

from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from procurement.app.core.config import settings
from procurement.app.db.session import SessionLocal
from procurement.services.catalog import CatalogLookup, DbCatalogLookup, HttpCatalogLookup


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_catalog(db: Session = Depends(get_db)) -> CatalogLookup:
    if settings.CATALOG_SERVICE_URL:
        return HttpCatalogLookup(
            settings.CATALOG_SERVICE_URL,
            api_key=settings.CATALOG_SERVICE_API_KEY,
            timeout=settings.CATALOG_TIMEOUT_SECONDS,
        )
    return DbCatalogLookup(db)
