import os

# Point the app at the test database before radiodeck.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("RATE_LIMIT", "10000/minute")

import random
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from radiodeck.core.dependencies import get_directory_client
from radiodeck.db.base import Base
from radiodeck.db.engine import build_engine
from radiodeck.db.session import get_db
from radiodeck.main import create_app
from radiodeck.services.directory_client import DirectoryClient, MirrorCache
from tests.fakes import FakeDirectory, FakeResolver

# Use SQLite for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"


@pytest.fixture
def fake_directory() -> FakeDirectory:
    return FakeDirectory()


@pytest.fixture
def resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture
def directory_client(fake_directory: FakeDirectory, resolver: FakeResolver) -> DirectoryClient:
    return DirectoryClient(
        mirror_cache=MirrorCache(ttl_seconds=3600),
        resolver=resolver,
        transport=fake_directory.transport,
        rng=random.Random(7),
    )


@pytest_asyncio.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    import radiodeck.models  # noqa: F401

    test_engine = build_engine(TEST_DATABASE_URL)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def app(db_session: AsyncSession, directory_client: DirectoryClient, monkeypatch):
    # Tables come from the engine fixture, not the app's startup hook
    monkeypatch.setattr("radiodeck.main._tables_created", True)
    application = create_app()

    async def override_get_db():
        yield db_session

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_directory_client] = lambda: directory_client
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
