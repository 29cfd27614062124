from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from charlieverse.config import Settings
from charlieverse.database import create_engine, create_session_factory, init_db
from charlieverse.main import create_app
from charlieverse.models.user import Principal, UserRole
from charlieverse.repositories.memory_repository import MemoryStorage
from charlieverse.repositories.sql_repository import SqlStorage
from charlieverse.services.event_bus import EventBus
from charlieverse.services.session_service import SessionStore

ADMIN_EMAIL = "admin@charlieverse.com"


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "_env_file": None,
        "database_url": None,
        "admin_email": ADMIN_EMAIL,
        "admin_password": None,
        "seed_admin": False,
        "smtp_host": None,
        "smtp_user": None,
        "smtp_pass": None,
        "gmail_user": None,
        "gmail_pass": None,
        "firebase_project_id": None,
        "upload_dir": tmp_path / "uploads",
        "upload_retention_hours": None,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
async def sql_storage(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'charlieverse.db'}")
    await init_db(engine)
    storage = SqlStorage(create_session_factory(engine), engine)
    yield storage
    await storage.close()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def sessions() -> SessionStore:
    return SessionStore(ttl_seconds=3600)


@pytest.fixture
def admin_principal() -> Principal:
    return Principal(user_id=1, email=ADMIN_EMAIL, first_name="Admin", role=UserRole.ADMIN)


@pytest.fixture
def user_principal() -> Principal:
    return Principal(user_id=2, email="client@example.com", first_name="Casey", role=UserRole.USER)


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register(client: TestClient, email: str, password: str = "s3cret-pass", **fields) -> tuple[dict, str]:
    """Register through the API; returns the user payload and its session token."""
    response = client.post(
        "/api/auth/register",
        json={"email": email, "password": password, **fields},
    )
    assert response.status_code == 201, response.text
    return response.json()["user"], response.cookies["charlieverse.sid"]


def login(client: TestClient, email: str, password: str = "s3cret-pass") -> tuple[dict, str]:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["user"], response.cookies["charlieverse.sid"]
