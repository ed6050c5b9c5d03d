"""User, region, session and notification DTOs."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from app.application.dtos.base import DTO
from app.domain.entities.user import User, UserRole


class LoginRequest(DTO):
    """Email/password login."""

    email: str
    password: str


class LoginResponse(DTO):
    """Session opened by a successful login."""

    token: str
    user_id: str
    role: UserRole
    full_name: str


class PasswordResetRequest(DTO):
    """Password reset trigger."""

    email: str


class CreateUserRequest(DTO):
    """Admin request to create a user account."""

    email: str
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=1)
    role: UserRole = UserRole.DISTRIBUTOR
    default_lock_in_months: int = 3
    assigned_regions: list[str] = []

    class Config:
        """Pydantic configuration."""

        json_schema_extra = {
            "example": {
                "email": "ravi@example.com",
                "password": "changeme",
                "full_name": "Ravi Kumar",
                "role": "distributor",
                "default_lock_in_months": 3,
                "assigned_regions": ["region_blr"],
            }
        }


class UpdateUserRequest(DTO):
    """Admin edit of a user account; omitted fields are left unchanged."""

    full_name: Optional[str] = None
    role: Optional[UserRole] = None
    default_lock_in_months: Optional[int] = None
    assigned_regions: Optional[list[str]] = None


class BulkRoleUpdateRequest(DTO):
    """Set the same role on several users at once."""

    user_ids: list[str] = Field(min_length=1)
    role: UserRole


class UserResponse(DTO):
    """User account as returned by the API."""

    id: str
    email: str
    full_name: str
    role: UserRole
    default_lock_in_months: int
    assigned_regions: list[str]
    is_active: bool
    created_at: datetime

    @classmethod
    def from_entity(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            role=user.role,
            default_lock_in_months=user.default_lock_in_months,
            assigned_regions=list(user.assigned_regions),
            is_active=user.is_active,
            created_at=user.created_at,
        )


class RegionRequest(DTO):
    """Create or edit a region."""

    name: str = Field(min_length=1)
    remarks: Optional[str] = None


class RegionResponse(DTO):
    """Region as returned by the API."""

    id: str
    name: str
    remarks: Optional[str] = None
    is_active: bool


class NotificationResponse(DTO):
    """Notification as returned by the API."""

    id: str
    title: str
    message: str
    type: str
    read: bool
    created_at: datetime
    link: Optional[str] = None
