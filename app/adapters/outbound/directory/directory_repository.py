"""In-memory user and region repository adapters."""

import copy
from typing import Optional

from app.application.ports.directory_repository import RegionRepository, UserRepository
from app.domain.entities.user import Region, User, UserRole
from app.domain.errors import NotFoundError


class InMemoryUserRepository(UserRepository):
    """In-memory implementation of user repository."""

    def __init__(self) -> None:
        """Initialize in-memory repository."""
        self._storage: dict[str, User] = {}

    async def get(self, user_id: str) -> Optional[User]:
        """
        Get a user by id.

        Args:
            user_id: Identity provider user id

        Returns:
            Detached copy of the user, or None if not found
        """
        stored = self._storage.get(user_id)
        return copy.deepcopy(stored) if stored is not None else None

    async def add(self, user: User) -> None:
        """
        Insert a user under its identity provider id.

        Args:
            user: User entity
        """
        self._storage[user.id] = copy.deepcopy(user)

    async def update(self, user: User) -> None:
        """Overwrite a stored user."""
        if user.id not in self._storage:
            raise NotFoundError("User", user.id)
        self._storage[user.id] = copy.deepcopy(user)

    async def update_roles(self, user_ids: list[str], role: UserRole) -> None:
        """Atomically set the role of several users."""
        missing = [user_id for user_id in user_ids if user_id not in self._storage]
        if missing:
            raise NotFoundError("User", missing[0])
        for user_id in user_ids:
            self._storage[user_id].role = role

    async def list(self) -> list[User]:
        """
        List all users.

        Returns:
            Every stored user
        """
        return copy.deepcopy(list(self._storage.values()))


class InMemoryRegionRepository(RegionRepository):
    """In-memory implementation of region repository."""

    def __init__(self) -> None:
        """Initialize in-memory repository."""
        self._storage: dict[str, Region] = {}

    async def get(self, region_id: str) -> Optional[Region]:
        stored = self._storage.get(region_id)
        return copy.deepcopy(stored) if stored is not None else None

    async def add(self, region: Region) -> None:
        self._storage[region.id] = copy.deepcopy(region)

    async def update(self, region: Region) -> None:
        if region.id not in self._storage:
            raise NotFoundError("Region", region.id)
        self._storage[region.id] = copy.deepcopy(region)

    async def delete(self, region_id: str) -> None:
        if self._storage.pop(region_id, None) is None:
            raise NotFoundError("Region", region_id)

    async def list(self) -> list[Region]:
        return copy.deepcopy(list(self._storage.values()))
