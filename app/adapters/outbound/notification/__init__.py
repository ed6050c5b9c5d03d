"""Notification repository adapters."""

from app.adapters.outbound.notification.notification_repository import (
    InMemoryNotificationRepository,
)
from app.adapters.outbound.notification.postgres_notification_repository import (
    PostgresNotificationRepository,
)

__all__ = [
    "InMemoryNotificationRepository",
    "PostgresNotificationRepository",
]
