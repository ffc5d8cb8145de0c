"""
Pytest configuration and fixtures for ScriptFlow cache service tests
"""
import fnmatch
import os
from typing import AsyncGenerator, Dict, List, Optional, Tuple

import pytest


# Set test environment variables BEFORE any imports
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///:memory:'
os.environ['REDIS_URL'] = 'redis://localhost:6379/15'
os.environ['ENVIRONMENT'] = 'development'
os.environ['LOG_JSON'] = 'false'
os.environ['ENABLE_CACHE_MONITORING'] = 'false'


class FakeRedis:
    """In-memory async double for the subset of redis.asyncio.Redis the cache uses"""

    def __init__(self):
        self.store: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.delete_calls: List[Tuple[str, ...]] = []
        self.fail_with: Optional[BaseException] = None
        self.ping_error: Optional[BaseException] = None
        self.ping_count = 0
        self.closed = False

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    async def ping(self):
        self.ping_count += 1
        if self.ping_error is not None:
            raise self.ping_error
        return True

    async def get(self, key):
        self._check()
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self._check()
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, *keys):
        self._check()
        self.delete_calls.append(keys)
        deleted = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                self.ttls.pop(key, None)
                deleted += 1
        return deleted

    async def scan_iter(self, match="*", count=None):
        self._check()
        for key in list(self.store):
            if fnmatch.fnmatchcase(key, match):
                yield key

    async def info(self, section=None):
        self._check()
        return {"used_memory_human": "1.05M", "used_memory": 1100000}

    async def flushdb(self):
        self._check()
        self.store.clear()
        self.ttls.clear()
        return True

    async def aclose(self):
        self.closed = True


class FakeClock:
    """Manually advanced clock (seconds)"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def redis_provider(fake_redis):
    """Провайдер, отдающий FakeRedis вместо настоящего клиента."""
    from app.cache.client import RedisClientProvider

    return RedisClientProvider("redis://test", client_factory=lambda: fake_redis)


@pytest.fixture
def unavailable_provider():
    """Провайдер без Redis (кэш выключен)."""
    from app.cache.client import RedisClientProvider

    return RedisClientProvider("redis://test", enabled=False)


@pytest.fixture
def cache_service(redis_provider):
    from app.cache.cache_service import CacheService

    return CacheService(redis_provider)


@pytest.fixture
async def db_engine():
    """
    Create an in-memory SQLite engine with all tables

    StaticPool keeps one connection, so every session sees the same database.
    """
    from sqlalchemy.ext.asyncio import create_async_engine
    from sqlalchemy.pool import StaticPool
    from app.database.models import Base

    engine = create_async_engine(
        'sqlite+aiosqlite:///:memory:',
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def test_db(session_maker) -> AsyncGenerator:
    """
    Create an in-memory SQLite database session for testing

    Yields:
        AsyncSession: SQLAlchemy async session
    """
    async with session_maker() as session:
        yield session


@pytest.fixture
def query_monitor(session_maker, clock):
    from app.monitoring.query_monitor import QueryPerformanceMonitor

    return QueryPerformanceMonitor(session_maker, clock=clock)


@pytest.fixture
async def sample_transcript(test_db):
    """Create a completed transcript for testing"""
    from app.database.models import Transcript

    transcript = Transcript(
        video_id="abc123",
        title="Intro to Redis caching",
        description="How to cache transcripts",
        summary="Redis keeps hot transcripts close to the API",
        language="en",
        duration=321.5,
        utterances=[{"start": 0.0, "end": 2.5, "text": "Hello"}],
        transcript_metadata={"source": "mock"},
        status="completed",
        ip_hash="iphash-1",
    )
    test_db.add(transcript)
    await test_db.commit()
    await test_db.refresh(transcript)

    return transcript


@pytest.fixture
async def client(session_maker, redis_provider, cache_service, query_monitor):
    """
    Create an async HTTP client for testing

    Lifespan is not run by ASGITransport, so singletons are placed on app.state directly.
    """
    from httpx import AsyncClient, ASGITransport
    from app.cache.monitor import CacheMonitor
    from app.main import app

    app.state.session_maker = session_maker
    app.state.client_provider = redis_provider
    app.state.cache_service = cache_service
    app.state.cache_monitor = CacheMonitor(cache_service, redis_provider)
    app.state.query_monitor = query_monitor

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    await query_monitor.wait_for_pending()
