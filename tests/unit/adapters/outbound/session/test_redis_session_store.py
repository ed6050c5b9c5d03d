"""Unit tests for Redis session store adapter."""

from unittest.mock import AsyncMock, patch

import pytest

from app.adapters.outbound.session.redis_session_store import RedisSessionStore


@pytest.fixture
def mock_redis_client():
    """Create a mock Redis client."""
    client = AsyncMock()
    client.get = AsyncMock(return_value=None)
    client.setex = AsyncMock()
    client.expire = AsyncMock()
    client.delete = AsyncMock()
    client.close = AsyncMock()
    return client


@pytest.fixture
def session_store():
    """Create Redis session store with test URL."""
    return RedisSessionStore("redis://localhost:6379/0")


@pytest.mark.asyncio
async def test_create_stores_user_with_idle_ttl(session_store, mock_redis_client):
    """Test that create writes the user id under a fresh token with the idle TTL."""
    with patch(
        "app.adapters.outbound.session.redis_session_store.aioredis.from_url",
        new_callable=AsyncMock,
    ) as mock_from_url:
        mock_from_url.return_value = mock_redis_client
        session_store._client = None

        token = await session_store.create("user_ravi", 1800)

        assert token
        mock_redis_client.setex.assert_called_once_with(f"session:{token}", 1800, "user_ravi")


@pytest.mark.asyncio
async def test_touch_extends_known_session(session_store, mock_redis_client):
    mock_redis_client.get.return_value = "user_ravi"

    with patch(
        "app.adapters.outbound.session.redis_session_store.aioredis.from_url",
        new_callable=AsyncMock,
    ) as mock_from_url:
        mock_from_url.return_value = mock_redis_client
        session_store._client = None

        user_id = await session_store.touch("tok123", 1800)

        assert user_id == "user_ravi"
        mock_redis_client.get.assert_called_once_with("session:tok123")
        mock_redis_client.expire.assert_called_once_with("session:tok123", 1800)


@pytest.mark.asyncio
async def test_touch_returns_none_for_expired_session(session_store, mock_redis_client):
    with patch(
        "app.adapters.outbound.session.redis_session_store.aioredis.from_url",
        new_callable=AsyncMock,
    ) as mock_from_url:
        mock_from_url.return_value = mock_redis_client
        session_store._client = None

        assert await session_store.touch("tok123", 1800) is None
        mock_redis_client.expire.assert_not_called()


@pytest.mark.asyncio
async def test_delete_and_close(session_store, mock_redis_client):
    with patch(
        "app.adapters.outbound.session.redis_session_store.aioredis.from_url",
        new_callable=AsyncMock,
    ) as mock_from_url:
        mock_from_url.return_value = mock_redis_client
        session_store._client = None

        await session_store.delete("tok123")
        await session_store.close()

        mock_redis_client.delete.assert_called_once_with("session:tok123")
        mock_redis_client.close.assert_called_once()
        assert session_store._client is None
