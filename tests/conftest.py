"""Shared test fixtures for the Workbench store test suite.

All tests run against a throwaway SQLite file (not ``:memory:``: content
fan-out opens one connection per worker thread, and every connection must
see the same database).  Set TEST_DATABASE_URL to run against PostgreSQL.
Each test starts from empty tables.
"""

import os
import tempfile

# Point the app at the test database before any app imports.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="workbench-test-")
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL",
    f"sqlite:///{os.path.join(_TEST_DB_DIR, 'workbench-test.db')}",
)
os.environ["ENVIRONMENT"] = "development"
os.environ["ORGANIZATION_IDENTITY_REF"] = ""
os.environ["LOG_FORMAT"] = "text"

import pytest
from fastapi.testclient import TestClient

from workbench.database import Base, get_db, SessionLocal
from workbench.main import app


@pytest.fixture(autouse=True)
def _clean_tables():
    """Empty every table before each test for isolation.

    Runs before the test (not after) so test failures leave data
    available for debugging.
    """
    db = SessionLocal()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
    finally:
        db.close()
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db):
    """FastAPI TestClient with the DB dependency overridden to use the test session."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
