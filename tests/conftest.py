"""
Test infrastructure for the Diary API.

Strategy
--------
- SQLite in-memory via aiosqlite, shared through StaticPool so every
  session sees the same connection-scoped database.
- The app's get_db dependency is overridden to use the test session
  factory; tables are created before and dropped after each test.
- Redis is disabled by setting cache._redis = None; the CacheManager
  treats that as a permanent miss.
- Image storage is a local-directory ImageStorage rooted in tmp_path,
  installed through the get_storage dependency override.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from app.cache import cache
from app.database import Base, get_db
from app.dependencies import get_storage
from app.main import app
from app.middleware import install_query_counter
from app.storage import ImageStorage

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    async with async_session_test() as session:
        yield session


@pytest.fixture
def storage(tmp_path) -> ImageStorage:
    """Local image storage under a per-test temporary directory."""
    local = ImageStorage(bucket="", local_dir=tmp_path / "uploads")
    app.dependency_overrides[get_storage] = lambda: local
    yield local
    app.dependency_overrides.pop(get_storage, None)


@pytest_asyncio.fixture
async def async_client(storage) -> AsyncClient:
    cache._redis = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def auth_headers(async_client: AsyncClient):
    """
    Return a coroutine that signs up *username* and returns the
    ``Authorization`` header for a fresh access token.
    """

    async def _login(username: str = "diarist") -> dict[str, str]:
        password = "correct-horse-battery"
        resp = await async_client.post("/api/v1/users", json={
            "username": username,
            "password": password,
        })
        assert resp.status_code == 201
        resp = await async_client.post("/api/v1/auth/token", json={
            "username": username,
            "password": password,
        })
        assert resp.status_code == 200
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}

    return _login
