import os
import sys

# Fast hashing and a fixed signing key for the whole test session
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-signing-secret-0123456789abcdef")

# ensure project root is on sys.path when running from tests/ folder
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import mongomock  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from auth import hash_password, issue_token  # noqa: E402
from database import create_document, ensure_indexes, get_db  # noqa: E402
from main import app  # noqa: E402


@pytest.fixture
def db():
    database = mongomock.MongoClient()["erp_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db, email, password="secret123", role="staff"):
    user = create_document(db, "user", {
        "email": email,
        "password": hash_password(password),
        "firstName": "Test",
        "lastName": role.title(),
        "role": role,
    })
    return user


def bearer(user_id):
    return {"Authorization": f"Bearer {issue_token(user_id)}"}


@pytest.fixture
def staff_headers(client):
    r = client.post("/api/auth/register", json={
        "email": "staff@example.com",
        "password": "secret123",
        "firstName": "Sam",
        "lastName": "Staff",
    })
    assert r.status_code == 201
    return {"Authorization": f"Bearer {r.json()['token']}"}


@pytest.fixture
def admin_headers(db):
    return bearer(make_user(db, "admin@example.com", role="admin")["_id"])


@pytest.fixture
def manager_headers(db):
    return bearer(make_user(db, "manager@example.com", role="manager")["_id"])


def product_payload(**overrides):
    data = {
        "name": "Widget",
        "sku": "WID-001",
        "category": "Hardware",
        "price": 19.99,
        "stock": 10,
    }
    data.update(overrides)
    return data
