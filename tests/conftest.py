"""
Test infrastructure for the social API.

Strategy
--------
- SQLite in-memory via aiosqlite removes the need for a running Postgres
  instance.  StaticPool makes every session share the single in-memory
  connection (an in-memory database is connection-scoped).
- ``PRAGMA foreign_keys=ON`` is installed on the test engine so the
  ON DELETE CASCADE clauses behave as they do on Postgres.
- The app's ``get_db`` dependency is overridden so every request uses the
  test session factory.
- Tables are created before and dropped after each test.
- The Redis cache is left disconnected (``cache._redis = None``); the
  PostCache treats that as a permanent miss, so tests hit the database.
  Tests that exercise caching request the ``redis_cache`` fixture, which
  swaps in a fakeredis client with its own empty server.
"""
import fakeredis
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from social_api.cache import cache
from social_api.database import Base, get_db, install_sqlite_foreign_keys
from social_api.main import app
from social_api.middleware import install_query_counter
from social_api.models import User

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)
install_sqlite_foreign_keys(engine_test)

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
    cache._redis = None
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def redis_cache():
    """Back the post cache with an in-process fake Redis for one test."""
    fake = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    cache._redis = fake
    cache.hits = cache.misses = 0
    yield fake
    cache._redis = None
    cache.hits = cache.misses = 0
    await fake.aclose()


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """A live AsyncSession for service-level tests."""
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """An httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

async def create_user_row(db: AsyncSession, username: str = "svcuser", email: str | None = None) -> User:
    user = User(username=username, email=email or f"{username}@example.com", name=username.title())
    db.add(user)
    await db.flush()
    return user


async def api_create_user(client: AsyncClient, username: str) -> int:
    resp = await client.post("/api/users", json={
        "email": f"{username}@example.com",
        "username": username,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["id"]


async def api_create_post(client: AsyncClient, author_id: int, title: str = "A post",
                          content: str = "Some content", published: bool = True) -> int:
    resp = await client.post("/api/posts", json={
        "title": title,
        "content": content,
        "published": published,
        "authorId": author_id,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["id"]
