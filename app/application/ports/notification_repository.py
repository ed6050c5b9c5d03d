"""Notification repository port."""

from abc import ABC, abstractmethod

from app.domain.entities.notification import Notification


class NotificationRepository(ABC):
    """Port interface for notifications."""

    @abstractmethod
    async def add(self, notification: Notification) -> None:
        """
        Store a notification.

        Args:
            notification: Notification entity
        """
        pass

    @abstractmethod
    async def list_for_user(self, user_id: str, unread_only: bool = False) -> list[Notification]:
        """
        List a user's notifications, newest first.

        Args:
            user_id: Recipient user id
            unread_only: Only return notifications not yet read

        Returns:
            Notifications for the user
        """
        pass

    @abstractmethod
    async def mark_read(self, notification_id: str, user_id: str) -> bool:
        """
        Mark a notification as read.

        Args:
            notification_id: Notification identifier
            user_id: Recipient; other users' notifications are not touched

        Returns:
            True if a notification was updated
        """
        pass
