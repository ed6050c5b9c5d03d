"""Redis session store adapter."""

import secrets
from typing import Optional

from redis import asyncio as aioredis

from app.application.ports.session_store import SessionStore


class RedisSessionStore(SessionStore):
    """Redis adapter for login sessions; the key TTL is the idle timeout."""

    KEY_PREFIX = "session:"

    def __init__(self, redis_url: str) -> None:
        """
        Initialize Redis session store.

        Args:
            redis_url: Redis connection URL
        """
        self._redis_url = redis_url
        self._client: Optional[aioredis.Redis] = None

    async def _get_client(self) -> aioredis.Redis:
        """
        Get or create Redis client.

        Returns:
            Redis client instance
        """
        if self._client is None:
            self._client = await aioredis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    def _make_key(self, token: str) -> str:
        return f"{self.KEY_PREFIX}{token}"

    async def create(self, user_id: str, ttl_seconds: int) -> str:
        """
        Open a session.

        Args:
            user_id: Signed-in user id
            ttl_seconds: Idle timeout in seconds

        Returns:
            Session token
        """
        client = await self._get_client()
        token = secrets.token_urlsafe(32)
        await client.setex(self._make_key(token), ttl_seconds, user_id)
        return token

    async def touch(self, token: str, ttl_seconds: int) -> Optional[str]:
        """
        Resolve a session and restart its idle timer.

        Args:
            token: Session token
            ttl_seconds: Idle timeout in seconds

        Returns:
            User id, or None if the session is unknown or expired
        """
        client = await self._get_client()
        redis_key = self._make_key(token)
        user_id = await client.get(redis_key)
        if user_id is None:
            return None
        await client.expire(redis_key, ttl_seconds)
        return user_id

    async def delete(self, token: str) -> None:
        client = await self._get_client()
        await client.delete(self._make_key(token))

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.close()
            self._client = None
