"""Shared fixtures: in-memory SQLite record store and a tmp_path storage root."""
import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["FILE_STORAGE_PATH"] = tempfile.mkdtemp(prefix="file-assets-")
os.environ["ORPHAN_SWEEP_ON_STARTUP"] = "false"
os.environ["ENVIRONMENT"] = "development"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from file_assets.database import get_db
from file_assets.dependencies import get_disk_store
from file_assets.main import app
from file_assets.models import Base
from file_assets.services.disk_store import DiskContentStore
from file_assets.services.file_lifecycle import FileLifecycleManager
from file_assets.services.record_gateway import FileAssetGateway


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(tmp_path):
    """Disk store rooted in a fresh temp directory."""
    return DiskContentStore(tmp_path / "uploads", public_prefix="/uploads")


@pytest.fixture
def gateway(db):
    return FileAssetGateway(db)


@pytest.fixture
def lifecycle(store, gateway):
    return FileLifecycleManager(store, gateway)


@pytest_asyncio.fixture
async def client(session_factory, store):
    """HTTP client against the app, wired to the test database and store."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_disk_store] = lambda: store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
