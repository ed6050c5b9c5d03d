"""Notification inbox use case."""

from app.application.ports.notification_repository import NotificationRepository
from app.domain.entities.notification import Notification
from app.domain.errors import NotFoundError


class NotificationInbox:
    """Use case for reading and acknowledging a user's notifications."""

    def __init__(self, notification_repository: NotificationRepository) -> None:
        """
        Initialize use case.

        Args:
            notification_repository: Notification store
        """
        self._notification_repository = notification_repository

    async def list(self, user_id: str, unread_only: bool = False) -> list[Notification]:
        return await self._notification_repository.list_for_user(user_id, unread_only=unread_only)

    async def mark_read(self, notification_id: str, user_id: str) -> None:
        """
        Mark one of the user's notifications as read.

        Raises:
            NotFoundError: If the user has no such notification
        """
        if not await self._notification_repository.mark_read(notification_id, user_id):
            raise NotFoundError("Notification", notification_id)
