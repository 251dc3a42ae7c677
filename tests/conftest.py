import mongomock
import pytest
from fastapi.testclient import TestClient

import payments
from database import ensure_indexes, get_db
from main import app


@pytest.fixture
def db():
    database = mongomock.MongoClient(tz_aware=True)["shop_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def offline_client():
    app.dependency_overrides[get_db] = lambda: None
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def stripe_key(monkeypatch):
    monkeypatch.setattr(payments, "STRIPE_API_KEY", "sk_test_123")


def signup(client, email="asha@example.com", **extra):
    body = {
        "firstName": "Asha",
        "lastName": "Rao",
        "email": email,
        "password": "secret",
        "confirmPassword": "secret",
        "image": "data:image/png;base64,AAAA",
    }
    body.update(extra)
    return client.post("/signup", json=body)
