"""
Test configuration and fixtures for the Workflow Vault app.

Every test gets a fresh SQLite database built from the model metadata and a
fake Supabase Storage API served through httpx.MockTransport.
"""

import os
import tempfile

from dotenv import load_dotenv

load_dotenv()

test_db_url = os.getenv("TEST_DATABASE_URL")
if test_db_url:
    if "postgresql://" in test_db_url and "asyncpg" not in test_db_url:
        test_db_url = test_db_url.replace("postgresql://", "postgresql+asyncpg://")
    os.environ["DATABASE_URL"] = test_db_url
else:
    test_db_path = tempfile.mktemp(suffix=".db")
    os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{test_db_path}"

os.environ["SUPABASE_URL"] = "https://test.supabase.co"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "service-role-test-key"

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from app.platform.db.base import Base
from app.platform.storage import SupabaseStorage

# Register tables on Base.metadata
from app.features.leads.models.lead import Lead  # noqa: F401
from app.features.workflows.models.workflow import Workflow  # noqa: F401

SUPABASE_URL = os.environ["SUPABASE_URL"]

LIST_PREFIX = "/storage/v1/object/list/"
PUBLIC_PREFIX = "/storage/v1/object/public/"


class FakeStorageAPI:
    """In-memory stand-in for the Supabase Storage REST endpoints."""

    def __init__(self):
        self.buckets: dict[str, list[str]] = {}
        self.files: dict[str, bytes] = {}
        self.failing_buckets: set[str] = set()
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path.startswith(LIST_PREFIX):
            bucket = path[len(LIST_PREFIX):]
            if bucket in self.failing_buckets:
                return httpx.Response(500, json={"message": "storage unavailable"})
            names = self.buckets.get(bucket, [])
            return httpx.Response(200, json=[{"name": name, "id": f"id-{name}"} for name in names])

        if request.method == "GET" and path.startswith(PUBLIC_PREFIX):
            key = path[len(PUBLIC_PREFIX):]
            content = self.files.get(key)
            if content is None:
                return httpx.Response(404, json={"error": "not_found"})
            return httpx.Response(200, content=content)

        return httpx.Response(404)

    def client(self) -> SupabaseStorage:
        return SupabaseStorage(
            SUPABASE_URL,
            "service-role-test-key",
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def storage_api() -> FakeStorageAPI:
    return FakeStorageAPI()


@pytest_asyncio.fixture
async def storage(storage_api):
    client = storage_api.client()
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(os.environ["DATABASE_URL"])
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory, storage):
    """HTTP client bound to the app, with the test database and fake storage wired in."""
    from app.main import app
    from app.platform.db.session import get_db

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.storage = storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.pop(get_db, None)
    app.state.storage = None
