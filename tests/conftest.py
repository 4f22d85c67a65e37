"""Shared fixtures: in-memory database, fake workspace service, authenticated client"""
import os

# Must be set before storage_service.config is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["AUTH_SERVICE_URL"] = ""
os.environ["USER_SERVICE_URL"] = ""
os.environ["DB_AUTO_MIGRATE"] = "false"
os.environ["STORAGE_CONFIG_FILE"] = "tests-config-does-not-exist.yaml"

import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storage_service.api.auth import create_access_token
from storage_service.api.deps import get_workspace_client
from storage_service.database import get_db
from storage_service.main import app
from storage_service.models import Base
from storage_service.services.access import AccessService, Principal


class FakeWorkspaceClient:
    """Every user belongs to every workspace unless listed in ``outsiders``"""

    def __init__(self):
        self.outsiders = set()
        self.calls = []

    @property
    def enabled(self) -> bool:
        return True

    async def validate_member(self, workspace_id, user_id, token) -> bool:
        self.calls.append((workspace_id, user_id))
        return (workspace_id, user_id) not in self.outsiders


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def workspace_client():
    return FakeWorkspaceClient()


@pytest.fixture
def access(db, workspace_client):
    return AccessService(db, workspace_client)


@pytest.fixture
def workspace_id():
    return uuid.uuid4()


@pytest.fixture
def owner():
    user_id = uuid.uuid4()
    return Principal(user_id=user_id, token=create_access_token(user_id))


@pytest.fixture
def outsider():
    user_id = uuid.uuid4()
    return Principal(user_id=user_id, token=create_access_token(user_id))


def auth_headers(principal: Principal) -> dict:
    return {"Authorization": f"Bearer {principal.token}"}


@pytest.fixture
async def client(session_factory, workspace_client):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_workspace_client] = lambda: workspace_client
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def headers():
    return auth_headers
