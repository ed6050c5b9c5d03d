"""User and region repository ports."""

from abc import ABC, abstractmethod
from typing import Optional

from app.domain.entities.user import Region, User, UserRole


class UserRepository(ABC):
    """Port interface for user accounts."""

    @abstractmethod
    async def get(self, user_id: str) -> Optional[User]:
        """
        Get a user by id.

        Args:
            user_id: Identity provider user id

        Returns:
            User entity, or None if not found
        """
        pass

    @abstractmethod
    async def add(self, user: User) -> None:
        """
        Insert a user document under its identity provider id.

        Args:
            user: User entity
        """
        pass

    @abstractmethod
    async def update(self, user: User) -> None:
        """
        Overwrite a stored user.

        Raises:
            NotFoundError: If the user does not exist
        """
        pass

    @abstractmethod
    async def update_roles(self, user_ids: list[str], role: UserRole) -> None:
        """
        Atomically set the role of several users.

        Raises:
            NotFoundError: If any user does not exist (nothing is written)
        """
        pass

    @abstractmethod
    async def list(self) -> list[User]:
        """
        List all users.

        Returns:
            Every stored user
        """
        pass


class RegionRepository(ABC):
    """Port interface for regions."""

    @abstractmethod
    async def get(self, region_id: str) -> Optional[Region]:
        """
        Get a region by id.

        Returns:
            Region entity, or None if not found
        """
        pass

    @abstractmethod
    async def add(self, region: Region) -> None:
        """Insert a region."""
        pass

    @abstractmethod
    async def update(self, region: Region) -> None:
        """
        Overwrite a stored region.

        Raises:
            NotFoundError: If the region does not exist
        """
        pass

    @abstractmethod
    async def delete(self, region_id: str) -> None:
        """Delete a region. References from users and leads are left untouched."""
        pass

    @abstractmethod
    async def list(self) -> list[Region]:
        """List all regions."""
        pass
