import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["NOTIFICATION_CONSUMER_ENABLED"] = "false"
os.environ["AUTO_MIGRATE_ON_STARTUP"] = "false"
os.environ["JWT_SECRET"] = "test-secret"

import fakeredis
import pytest
from fakeredis import aioredis as fake_aioredis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import src.models  # noqa: F401
from src.broker import get_queue_broker
from src.cache import get_redis
from src.database import Base, get_db
from src.feed.client import AuthServiceClient, get_auth_service_client
from src.main import app
from src.storage import get_storage_service
from tests.utils import BASE_URL, FakeBroker, FakeStorage


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def redis():
    client = fake_aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def broker():
    return FakeBroker()


@pytest.fixture
async def client(session_factory, redis, storage, broker):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: redis
    app.dependency_overrides[get_storage_service] = lambda: storage
    app.dependency_overrides[get_queue_broker] = lambda: broker
    # The feed asks the subscriptions endpoint of this same app
    app.dependency_overrides[get_auth_service_client] = lambda: AuthServiceClient(
        base_url=BASE_URL, transport=ASGITransport(app=app)
    )

    async with AsyncClient(transport=ASGITransport(app=app), base_url=BASE_URL) as http:
        yield http

    app.dependency_overrides.clear()
