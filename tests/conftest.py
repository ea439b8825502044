from datetime import timedelta

import mongomock
import pytest
from fastapi.testclient import TestClient

from config import Settings
from database import TRANSACTIONS, utcnow
from main import create_app


@pytest.fixture
def settings():
    # cost 4 is the bcrypt minimum; keeps hashing fast in tests
    return Settings(jwt_secret="test-secret", bcrypt_rounds=4)


@pytest.fixture
def db():
    return mongomock.MongoClient()["finance_test"]


@pytest.fixture
def client(settings, db):
    return TestClient(create_app(settings, db))


def register(client, name="Jane Doe", email="jane@example.com", password="secret123"):
    return client.post("/api/auth/register", json={"name": name, "email": email, "password": password})


@pytest.fixture
def token(client):
    return register(client).json()["data"]["token"]


@pytest.fixture
def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


def make_tx(amount, category="Food", days_ago=0, status="Completed", user_id="u1", user_name="Alice", **extra):
    doc = {
        "user_id": user_id,
        "user_name": user_name,
        "amount": amount,
        "category": category,
        "status": status,
        "date": utcnow() - timedelta(days=days_ago),
    }
    doc.update(extra)
    return doc


@pytest.fixture
def seed(db):
    def _seed(*docs):
        db[TRANSACTIONS].insert_many([dict(d) for d in docs])
    return _seed


def iso_days_ago(days):
    """A date stored the legacy way, as an ISO-8601 string with a Z suffix."""
    return (utcnow() - timedelta(days=days)).isoformat() + "Z"
