"""Notification entity."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

NOTIFICATION_TYPES = ("info", "success", "warning", "error")


@dataclass
class Notification:
    """In-app notification addressed to a single user."""

    id: str
    user_id: str
    title: str
    message: str
    type: str = "info"
    read: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    link: Optional[str] = None

    def __post_init__(self) -> None:
        if self.type not in NOTIFICATION_TYPES:
            raise ValueError(f"Unknown notification type: {self.type!r}")
