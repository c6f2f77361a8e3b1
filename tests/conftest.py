"""
Shared pytest fixtures.

Environment is set before anything under ``app`` is imported, because
``get_settings()`` is cached and ``app.main`` builds an app at import time.
"""
import os
import tempfile

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "10")
os.environ.setdefault("MEDIA_ROOT", tempfile.mkdtemp(prefix="marketplace-uploads-"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from app.core.database import Database
from app.main import create_app

DEFAULT_PASSWORD = "Abcdef1!"


@pytest.fixture
def database():
    db = Database("sqlite://", poolclass=StaticPool)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def db_session(database):
    session = database.session_factory()
    yield session
    session.close()


@pytest.fixture
def app(database):
    return create_app(database=database)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def user_payload(email: str, name: str = "Test User", **overrides) -> dict:
    payload = {
        "name": name,
        "email": email,
        "password": DEFAULT_PASSWORD,
        "phone": "11987654321",
        "address": "Rua das Flores, 123",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def register(client):
    """Create a user and log in; returns ``(user_dict, auth_headers)``."""

    def _register(email: str, name: str = "Test User"):
        resp = client.post("/user", json=user_payload(email, name=name))
        assert resp.status_code == 201, resp.text
        login = client.post("/user/login", json={"email": email, "password": DEFAULT_PASSWORD})
        assert login.status_code == 200, login.text
        token = login.json()["access_token"]
        return resp.json(), {"Authorization": f"Bearer {token}"}

    return _register


@pytest.fixture
def alice(register):
    return register("a@x.com", name="Alice Seller")


@pytest.fixture
def bob(register):
    return register("b@x.com", name="Bob Buyer")


@pytest.fixture
def carol(register):
    return register("c@x.com", name="Carol Other")


@pytest.fixture
def create_product(client):
    def _create(headers, **fields):
        data = {
            "title": "Guitarra Elétrica",
            "description": "Guitarra em ótimo estado, pouco usada.",
            "price": "10.00",
            "category": "Instrumentos",
            "image_url": "https://images.example.com/guitar.png",
        }
        data.update(fields)
        resp = client.post("/produto", data=data, headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create
