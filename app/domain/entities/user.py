"""User and region entities (the reference-data directory)."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class UserRole(str, Enum):
    """Roles a user account can hold."""

    ADMIN = "admin"
    DISTRIBUTOR = "distributor"
    USER = "user"


@dataclass
class User:
    """User account entity, keyed by the identity provider's user id."""

    id: str
    email: str
    full_name: str
    role: UserRole = UserRole.DISTRIBUTOR
    default_lock_in_months: int = 3
    assigned_regions: list[str] = field(default_factory=list)
    is_active: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_admin(self) -> bool:
        """Check whether the user holds the admin role."""
        return self.role == UserRole.ADMIN

    def matches_name_or_email(self, value: str) -> bool:
        """Case-insensitive match against full name or email."""
        needle = (value or "").strip().lower()
        if not needle:
            return False
        return self.full_name.lower() == needle or self.email.lower() == needle


@dataclass
class Region:
    """Sales region entity."""

    id: str
    name: str
    remarks: Optional[str] = None
    is_active: bool = True

    def has_name(self, name: str) -> bool:
        """Case-insensitive name comparison used for uniqueness checks."""
        return self.name.strip().lower() == name.strip().lower()
