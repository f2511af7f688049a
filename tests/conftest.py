"""Test configuration and fixtures."""
import os

# Settings are read at import time
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("AUTH_SECRET_KEY", "test-secret-key")

from datetime import date

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from regportal.config import settings
from regportal.main import create_app
from regportal.models.base import Base
from regportal.services.credential_store import CredentialStore

PASSWORD = "Abcdef1!"


@pytest.fixture
def database_url(tmp_path, monkeypatch):
    """Point the application at a fresh SQLite file."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    monkeypatch.setattr(settings.database, "url", url)
    return url


@pytest_asyncio.fixture
async def async_engine(database_url):
    """Create async engine for tests."""
    engine = create_async_engine(database_url, echo=False)
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    yield engine
    
    await engine.dispose()


@pytest_asyncio.fixture
async def async_session(async_engine):
    """Create async session for tests."""
    session_factory = async_sessionmaker(
        async_engine, class_=AsyncSession, expire_on_commit=False
    )
    
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(async_session):
    return CredentialStore(async_session)


@pytest.fixture
def profile():
    """Column values for a new user."""
    return {
        "first_name": "Alice",
        "last_name": "Anders",
        "email": "a@x.com",
        "username": "alice01",
        "phone": "+1 555 123 4567",
        "address": "1 Main Street",
        "city": "Springfield",
        "state": "IL",
        "zipcode": "62701",
        "country": "USA",
        "date_of_birth": date(1990, 5, 15),
        "gender": "female",
        "newsletter": False,
    }


@pytest.fixture
def client(database_url):
    """Create test client backed by a per-test database."""
    app = create_app()
    
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def registration_payload():
    """Registration form body as sent by the browser."""
    return {
        "firstName": "Alice",
        "lastName": "Anders",
        "dateOfBirth": "1990-05-15",
        "gender": "female",
        "email": "a@x.com",
        "phone": "+1 555 123 4567",
        "address": "1 Main Street",
        "city": "Springfield",
        "state": "IL",
        "zipcode": "62701",
        "country": "USA",
        "username": "alice01",
        "password": PASSWORD,
        "confirmPassword": PASSWORD,
        "terms": True,
        "privacy": True,
        "newsletter": True,
    }


@pytest.fixture
def registered_user(client, registration_payload):
    """Register the default user and return its id."""
    response = client.post("/submit", json=registration_payload)
    assert response.status_code == 200
    return response.json()["userId"]


@pytest.fixture
def auth_headers(client, registered_user):
    """Authorization headers for the registered user."""
    response = client.post(
        "/login",
        json={"username": "alice01", "password": PASSWORD}
    )
    assert response.status_code == 200
    
    return {"Authorization": f"Bearer {response.json()['token']}"}
