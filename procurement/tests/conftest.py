from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from procurement.app.api.deps import get_db
from procurement.app.core.config import settings
from procurement.app.db.base import Base
from procurement.app.db.models.models_v1 import CatalogItem
from procurement.app.main import app
from procurement.services.catalog import DbCatalogLookup

CATALOG_ROWS = [
    # id, supplier, price
    ("X", "AcmeValves", "120.00"),
    ("Z", "AcmeValves", "19.99"),
    ("Y", "BetaPumps", "75.50"),
]


@pytest.fixture(scope="session")
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, _connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


@pytest.fixture(scope="function")
def session_factory(engine):
    """Fresh schema per test, seeded with a tiny catalog."""
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    db = factory()
    for item_id, supplier, price in CATALOG_ROWS:
        db.add(
            CatalogItem(
                id=item_id,
                name=f"Item {item_id}",
                category="Valve",
                supplier=supplier,
                price_usd=Decimal(price),
            )
        )
    db.commit()
    db.close()
    return factory


@pytest.fixture(scope="function")
def db_session(session_factory) -> Session:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def catalog(db_session) -> DbCatalogLookup:
    return DbCatalogLookup(db_session)


@pytest.fixture(scope="function")
def client(session_factory, monkeypatch):
    monkeypatch.setattr(settings, "CATALOG_SERVICE_URL", "")

    def _override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
