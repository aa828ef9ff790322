"""
Shared fixtures and request helpers.

Every test runs against a fresh in-memory SQLite schema. The settings object
is built at import time, so the environment is populated first.
"""

import os

os.environ.update(
    {
        "DATABASE_URL": "sqlite:///:memory:",
        "SECRET_KEY": "teamspace-test-signing-key-0123456789",
        "ALGORITHM": "HS256",
    }
)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from teamspace.database import Base, build_engine, get_db  # noqa: E402
from teamspace.main import app  # noqa: E402
from teamspace.services.message_store import MessageStore, get_message_store  # noqa: E402

# StaticPool hands every session the one connection, so worker-thread
# sessions opened by MessageStore see the same in-memory database.
engine = build_engine("sqlite:///:memory:", poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def store():
    return MessageStore(TestingSessionLocal)


@pytest.fixture()
def client(db, store):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_message_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def register_user(client: TestClient, username="testuser", email="test@example.com", password="Password1!"):
    return client.post("/api/auth/register", json={"username": username, "email": email, "password": password})


def auth_headers(client: TestClient, username="testuser", email="test@example.com", password="Password1!"):
    resp = register_user(client, username=username, email=email, password=password)
    assert resp.status_code == 200, f"Registration failed: {resp.json()}"
    token = resp.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


def create_business(client: TestClient, headers: dict, name="Acme Corp") -> dict:
    resp = client.post("/api/businesses", json={"name": name}, headers=headers)
    assert resp.status_code == 201, resp.json()
    return resp.json()


def create_channel(client: TestClient, headers: dict, business_id: str, name="general", **fields) -> dict:
    resp = client.post(f"/api/businesses/{business_id}/channels", json={"name": name, **fields}, headers=headers)
    assert resp.status_code == 201, resp.json()
    return resp.json()


def add_member(client: TestClient, headers: dict, business_id: str, user_id: str, role="member") -> dict:
    resp = client.post(
        f"/api/businesses/{business_id}/members",
        json={"user_id": user_id, "role": role},
        headers=headers,
    )
    assert resp.status_code == 201, resp.json()
    return resp.json()
