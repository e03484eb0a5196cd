# tests/conftest.py

import os

# must be set before taskboard.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from taskboard.config import Settings
from taskboard.db import init_db, make_engine
from taskboard.main import create_app
from taskboard.repository import UserRepository

TEST_SECRET = "test-secret"


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        secret_key=TEST_SECRET,
        token_ttl_hours=24,
        bcrypt_rounds=4,
        cors_origins=["http://localhost:5173"],
        log_level="DEBUG",
    )


@pytest.fixture()
def app(settings):
    """A fresh application backed by its own in-memory database."""
    return create_app(settings)


@pytest.fixture()
def api_client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def db():
    engine = make_engine("sqlite://")
    init_db(engine)
    session = sessionmaker(bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def make_user(db):
    users = UserRepository(db)

    def _make(name: str, email: str | None = None):
        return users.add(name, email or f"{name.lower()}@example.com", "not-a-hash")

    return _make


@pytest.fixture()
def register(api_client):
    """Register a user through the API and return ``(user, headers)``."""

    def _register(name: str, email: str | None = None, password: str = "secret1"):
        email = email or f"{name.lower()}@example.com"
        response = api_client.post(
            "/api/auth/register", json={"name": name, "email": email, "password": password}
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return body["user"], {"Authorization": f"Bearer {body['token']}"}

    return _register
