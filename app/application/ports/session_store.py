"""Session store port."""

from abc import ABC, abstractmethod
from typing import Optional


class SessionStore(ABC):
    """Port interface for login sessions with an idle timeout."""

    @abstractmethod
    async def create(self, user_id: str, ttl_seconds: int) -> str:
        """
        Open a session.

        Args:
            user_id: Signed-in user id
            ttl_seconds: Idle timeout in seconds

        Returns:
            Session token
        """
        pass

    @abstractmethod
    async def touch(self, token: str, ttl_seconds: int) -> Optional[str]:
        """
        Resolve a session and restart its idle timer.

        Args:
            token: Session token
            ttl_seconds: Idle timeout in seconds

        Returns:
            User id, or None if the session is unknown or expired
        """
        pass

    @abstractmethod
    async def delete(self, token: str) -> None:
        """
        Close a session.

        Args:
            token: Session token
        """
        pass
