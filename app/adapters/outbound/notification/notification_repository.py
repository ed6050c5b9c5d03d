"""In-memory notification repository adapter."""

import copy

from app.application.ports.notification_repository import NotificationRepository
from app.domain.entities.notification import Notification


class InMemoryNotificationRepository(NotificationRepository):
    """In-memory implementation of notification repository."""

    def __init__(self) -> None:
        """Initialize in-memory repository."""
        self._storage: list[Notification] = []

    async def add(self, notification: Notification) -> None:
        self._storage.append(copy.deepcopy(notification))

    async def list_for_user(self, user_id: str, unread_only: bool = False) -> list[Notification]:
        """
        List a user's notifications, newest first.

        Args:
            user_id: Recipient user id
            unread_only: Only return notifications not yet read

        Returns:
            Notifications for the user
        """
        matches = [
            notification
            for notification in self._storage
            if notification.user_id == user_id and not (unread_only and notification.read)
        ]
        matches.sort(key=lambda notification: notification.created_at, reverse=True)
        return copy.deepcopy(matches)

    async def mark_read(self, notification_id: str, user_id: str) -> bool:
        for notification in self._storage:
            if notification.id == notification_id and notification.user_id == user_id:
                notification.read = True
                return True
        return False
