import json
import pytest
from unittest.mock import AsyncMock
from uuid import uuid4

from src.core.service.auth.cache.session_store import SessionStore
from src.core.service.auth.models.session import SessionData
from src.core.service.identity.models import CachedIdentity, UserSnapshot

SESSION_TTL = 86400


@pytest.fixture
def store(redis_double):
    return SessionStore(redis_double, ttl_seconds=SESSION_TTL)


def _signed_in_session() -> SessionData:
    return SessionData(
        user_email="ninja@example.com",
        user_id=uuid4(),
        user_data=CachedIdentity(
            user=UserSnapshot(username="ninja", email="ninja@example.com", balance="12.50"),
            last_fetch=1_700_000_000_000
        )
    )


@pytest.mark.asyncio
async def test_save_and_load_session(store, redis_double):
    session = _signed_in_session()

    await store.save_session(session)
    loaded = await store.get_session(str(session.id))

    key = f"session:{session.id}"
    assert redis_double.ttls[key] == SESSION_TTL
    stored = json.loads(redis_double.data[key])
    assert stored["userData"]["lastFetch"] == 1_700_000_000_000
    assert "destroyed" not in stored
    assert loaded == session


@pytest.mark.asyncio
async def test_unknown_and_malformed_ids_yield_none(store):
    assert await store.get_session(str(uuid4())) is None
    assert await store.get_session("../../etc/passwd") is None


@pytest.mark.asyncio
async def test_corrupt_entry_is_discarded(store, redis_double):
    session_id = uuid4()
    redis_double.data[f"session:{session_id}"] = "{not json"

    assert await store.get_session(str(session_id)) is None


@pytest.mark.asyncio
async def test_destroy_session_removes_key(store, redis_double):
    session = _signed_in_session()
    await store.save_session(session)

    await store.destroy_session(session.id)

    assert f"session:{session.id}" not in redis_double.data
    assert await store.get_session(str(session.id)) is None


@pytest.mark.asyncio
async def test_redis_errors_propagate():
    redis_client = AsyncMock()
    redis_client.get.side_effect = ConnectionError("redis down")
    store = SessionStore(redis_client, ttl_seconds=SESSION_TTL)

    with pytest.raises(ConnectionError):
        await store.get_session(str(uuid4()))
