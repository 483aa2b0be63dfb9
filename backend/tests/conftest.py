"""
Pytest configuration and shared test helpers for backend tests.
"""
import os
import sys
from pathlib import Path

# Skip MongoDB startup when running under pytest.
os.environ.setdefault("PYTEST_RUNNING", "1")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("ENVIRONMENT", "development")

backend_root = Path(__file__).resolve().parent.parent
if str(backend_root) not in sys.path:
    sys.path.insert(0, str(backend_root))

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi.testclient import TestClient
from server import app
from auth import create_access_token

COLLECTIONS = ("users", "leads", "organizations", "audit_logs")


def make_cursor(docs):
    """Motor-style cursor whose chained sort/skip/limit resolve to docs."""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=list(docs))
    return cursor


def make_db():
    """MagicMock database with async collection methods and empty defaults."""
    db = MagicMock()
    for name in COLLECTIONS:
        coll = getattr(db, name)
        coll.find_one = AsyncMock(return_value=None)
        coll.insert_one = AsyncMock()
        coll.update_one = AsyncMock(return_value=MagicMock(matched_count=1, modified_count=1))
        coll.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
        coll.count_documents = AsyncMock(return_value=0)
        coll.find = MagicMock(return_value=make_cursor([]))
    return db


def user_doc(user_id, role="agent", organization_id="ORG-A", **extra):
    doc = {
        "user_id": user_id,
        "name": f"User {user_id}",
        "email": f"{user_id.lower()}@example.com",
        "role": role,
        "active": True,
        "organization_id": organization_id,
    }
    doc.update(extra)
    return doc


def bearer(user_id, role="agent"):
    token = create_access_token({"id": user_id, "email": f"{user_id.lower()}@example.com", "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def db():
    """Patch the shared Database so every service sees the same mock."""
    mock_db = make_db()
    with patch("database.database.get_db", return_value=mock_db):
        yield mock_db


@pytest.fixture
def client():
    """Return a TestClient for the main FastAPI app (server:app)."""
    return TestClient(app)
