"""Shared pytest fixtures for store, cache, service and API tests."""

import datetime
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
import pytest_asyncio
import redis.asyncio as redis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.allocator import CodeAllocator
from app.cache import UrlCache
from app.config import Settings, get_settings
from app.database import build_engine, create_tables, get_db, session_factory
from app.main import app
from app.models import UrlMapping
from app.redis import get_redis
from app.store import UrlMappingStore
from app.url_service import URLShorteningService
from tests.helpers import FakeClock, SequenceSeedSource

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    engine = build_engine(TEST_DATABASE_URL)
    await create_tables(engine)

    async with session_factory(engine)() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def cache_data() -> dict[str, str]:
    """Backing dict of the Redis double, keyed exactly like Redis."""
    return {}


@pytest.fixture
def redis_client(cache_data: dict[str, str]) -> AsyncMock:
    async def _get(key: str) -> str | None:
        return cache_data.get(key)

    async def _set(key: str, value: str, ex: int | None = None, **kwargs: object) -> bool:
        cache_data[key] = value
        return True

    async def _delete(*keys: str) -> int:
        return sum(1 for key in keys if cache_data.pop(key, None) is not None)

    client = AsyncMock(spec=redis.Redis)
    client.get = AsyncMock(side_effect=_get)
    client.set = AsyncMock(side_effect=_set)
    client.delete = AsyncMock(side_effect=_delete)
    client.ping = AsyncMock(return_value=True)
    return client


@pytest.fixture
def mock_logger() -> MagicMock:
    return MagicMock()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc))


@pytest.fixture
def store(db_session: AsyncSession) -> UrlMappingStore:
    return UrlMappingStore(db_session)


@pytest.fixture
def url_cache(redis_client: AsyncMock, settings: Settings, mock_logger: MagicMock) -> UrlCache:
    return UrlCache(redis_client, prefix=settings.CACHE_KEY_PREFIX, ttl_seconds=settings.CACHE_TTL_SECONDS, logger=mock_logger)


@pytest.fixture
def ctx(db_session: AsyncSession, redis_client: AsyncMock, mock_logger: MagicMock, settings: Settings) -> Mock:
    context = Mock()
    context.database = db_session
    context.cache = redis_client
    context.logger = mock_logger
    context.settings = settings
    return context


@pytest.fixture
def seed_source() -> SequenceSeedSource:
    return SequenceSeedSource(42)


@pytest.fixture
def url_service(
    ctx: Mock,
    store: UrlMappingStore,
    url_cache: UrlCache,
    seed_source: SequenceSeedSource,
    clock: FakeClock,
    settings: Settings,
) -> URLShorteningService:
    allocator = CodeAllocator(store, length=settings.SHORT_CODE_LENGTH, seed_source=seed_source)
    return URLShorteningService(ctx, store=store, cache=url_cache, allocator=allocator, clock=clock)


@pytest.fixture
def make_mapping(clock: FakeClock):
    def _make(short_code: str, long_url: str = "https://example.com", **kwargs: object) -> UrlMapping:
        kwargs.setdefault("created_at", clock())
        kwargs.setdefault("clicks", 0)
        return UrlMapping(short_code=short_code, long_url=long_url, **kwargs)

    return _make


@pytest_asyncio.fixture
async def client(db_session: AsyncSession, redis_client: AsyncMock) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    async def override_get_redis() -> redis.Redis:
        return redis_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
