"""Pytest configuration and fixtures for the AgentForLife backend tests.

This module provides fixtures for:
- Database: SQLite in-memory session shared with the API
- Push: a fake Expo gateway that records every message
- HTTP client: FastAPI TestClient with the DB and gateway overridden
"""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import StaticPool, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

import app.models  # noqa: F401
from app.core.config import settings
from app.core.database import Base, get_db
from app.services.push_gateway import get_push_gateway
from tests.factories import FakePushGateway


CRON_SECRET = "test-cron-secret"


# -----------------------------------------------------------------------------
# Database Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def engine():
    """Create a synchronous SQLite in-memory engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Enable foreign key support for SQLite
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine) -> Generator[Session, None, None]:
    """Create a database session for testing."""
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


# -----------------------------------------------------------------------------
# Push + Settings Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def push_gateway() -> FakePushGateway:
    return FakePushGateway()


@pytest.fixture
def cron_secret(monkeypatch) -> str:
    monkeypatch.setattr(settings, "CRON_SECRET", CRON_SECRET)
    return CRON_SECRET


@pytest.fixture
def cron_headers(cron_secret) -> dict:
    return {"Authorization": f"Bearer {cron_secret}"}


# -----------------------------------------------------------------------------
# FastAPI Test Client Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def api_client(db_session, push_gateway) -> Generator[TestClient, None, None]:
    """TestClient whose requests share the test session and fake gateway."""
    from app.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_push_gateway] = lambda: push_gateway

    yield TestClient(app)

    app.dependency_overrides.clear()
