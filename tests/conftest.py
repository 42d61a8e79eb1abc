"""Shared fixtures: in-memory SQLite behind an async facade, and a Redis double."""

from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from src.api.middleware.session import session_middleware
from src.app import create_app
from src.core.service.auth.cache.session_store import SessionStore
from src.infra.config.settings import settings
from src.infra.database import get_async_session
from src.infra.models import Base, ServiceModel
from src.infra.repository.user_repository import UserRepository


class AsyncSessionWrapper:
    """Exposes the awaitable subset of AsyncSession over a sync Session."""

    def __init__(self, sync_session) -> None:
        self._sync = sync_session

    async def execute(self, *args, **kwargs):
        return self._sync.execute(*args, **kwargs)

    async def get(self, *args, **kwargs):
        return self._sync.get(*args, **kwargs)

    def add(self, obj) -> None:
        self._sync.add(obj)

    def add_all(self, objs) -> None:
        self._sync.add_all(objs)

    async def flush(self) -> None:
        self._sync.flush()

    async def commit(self) -> None:
        self._sync.commit()

    async def rollback(self) -> None:
        self._sync.rollback()

    async def refresh(self, obj) -> None:
        self._sync.refresh(obj)

    async def close(self) -> None:
        self._sync.close()


class InMemoryRedis:
    """Just the string commands SessionStore uses."""

    def __init__(self) -> None:
        self.data = {}
        self.ttls = {}

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.data[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            removed += int(self.data.pop(key, None) is not None)
            self.ttls.pop(key, None)
        return removed


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    sync_session = SessionLocal()
    try:
        yield AsyncSessionWrapper(sync_session)
    finally:
        sync_session.close()
        engine.dispose()


@pytest.fixture
def redis_double():
    return InMemoryRedis()


@pytest_asyncio.fixture
async def member(db_session):
    users = UserRepository(db_session)
    return await users.create_user("ninja", "ninja@example.com", password_hash=None)


@pytest_asyncio.fixture
async def catalog(db_session):
    db_session.add_all([
        ServiceModel(name="WhatsApp", price=Decimal("1.50"), ltr_short_price=Decimal("1.50"),
                     ltr_price=Decimal("5.00"), available="1"),
        ServiceModel(name="Telegram", price=Decimal("1.00"), ltr_short_price=Decimal("1.00"),
                     ltr_price=Decimal("4.00"), available="true"),
        ServiceModel(name="Instagram", price=Decimal("2.00"), ltr_short_price=Decimal("2.00"),
                     ltr_price=Decimal("7.00"), available="0"),
    ])
    await db_session.commit()


@pytest.fixture
def app(db_session, redis_double, monkeypatch):
    """App wired to the SQLite session and the Redis double; no lifespan is run."""
    monkeypatch.setattr(settings, "SESSION_COOKIE_SECURE", False)

    async def session_store():
        return SessionStore(redis_double, ttl_seconds=settings.SESSION_TTL_SECONDS)

    async def lookup(email):
        return await UserRepository(db_session).get_profile_by_email(email)

    monkeypatch.setattr(session_middleware, "get_session_store", session_store)
    monkeypatch.setattr(session_middleware, "lookup_user_profile", lookup)

    application = create_app()

    async def override_session():
        yield db_session

    application.dependency_overrides[get_async_session] = override_session
    return application


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)
