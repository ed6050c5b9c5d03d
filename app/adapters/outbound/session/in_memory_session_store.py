"""In-memory session store adapter."""

import secrets
import time
from typing import Callable, Optional

from app.application.ports.session_store import SessionStore


class InMemorySessionStore(SessionStore):
    """In-memory implementation of the session store with sliding expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """
        Initialize in-memory session store.

        Args:
            clock: Monotonic seconds source (injectable for tests)
        """
        self._clock = clock
        self._sessions: dict[str, tuple[str, float]] = {}

    async def create(self, user_id: str, ttl_seconds: int) -> str:
        token = secrets.token_urlsafe(32)
        self._sessions[token] = (user_id, self._clock() + ttl_seconds)
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
        entry = self._sessions.get(token)
        if entry is None:
            return None
        user_id, expires_at = entry
        now = self._clock()
        if expires_at <= now:
            del self._sessions[token]
            return None
        self._sessions[token] = (user_id, now + ttl_seconds)
        return user_id

    async def delete(self, token: str) -> None:
        self._sessions.pop(token, None)
