"""Region and user directory use cases (admin-only writes)."""

import uuid
from typing import Callable, Optional

from app.application.dtos.directory import CreateUserRequest, RegionRequest, UpdateUserRequest
from app.application.ports.directory_repository import RegionRepository, UserRepository
from app.application.ports.identity_provider import IdentityProvider
from app.domain.entities.user import Region, User, UserRole
from app.domain.errors import BusinessRuleError, LeadValidationError, NotFoundError
from app.domain.value_objects.lock_in_period import LockInPeriod
from app.infrastructure.logging.logger import log_event


def _new_id() -> str:
    return uuid.uuid4().hex


def _check_lock_in(months: int) -> None:
    try:
        LockInPeriod(months)
    except ValueError as e:
        raise LeadValidationError(str(e), field="default_lock_in_months") from e


class DirectoryService:
    """Use cases for managing regions and user accounts."""

    def __init__(
        self,
        user_repository: UserRepository,
        region_repository: RegionRepository,
        identity_provider: IdentityProvider,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        """
        Initialize service.

        Args:
            user_repository: User accounts
            region_repository: Regions
            identity_provider: Credential store for new accounts
            id_factory: Identifier source for regions
        """
        self._user_repository = user_repository
        self._region_repository = region_repository
        self._identity_provider = identity_provider
        self._id_factory = id_factory

    # Regions

    async def _ensure_unique_region_name(self, name: str, exclude_id: Optional[str] = None) -> None:
        for region in await self._region_repository.list():
            if region.id != exclude_id and region.has_name(name):
                raise BusinessRuleError("Region name must be unique")

    async def _get_region(self, region_id: str) -> Region:
        region = await self._region_repository.get(region_id)
        if region is None:
            raise NotFoundError("Region", region_id)
        return region

    async def list_regions(self, active_only: bool = False) -> list[Region]:
        """
        List regions by name.

        Args:
            active_only: Only return active regions (create-lead dropdown)

        Returns:
            Regions
        """
        regions = await self._region_repository.list()
        if active_only:
            regions = [region for region in regions if region.is_active]
        return sorted(regions, key=lambda region: region.name.lower())

    async def create_region(self, request: RegionRequest) -> Region:
        """
        Create a region.

        Raises:
            BusinessRuleError: If another region has the same name (case-insensitive)
        """
        name = request.name.strip()
        await self._ensure_unique_region_name(name)
        region = Region(id=self._id_factory(), name=name, remarks=request.remarks)
        await self._region_repository.add(region)
        log_event(component="directory", action="region_created", region_id=region.id, name=name)
        return region

    async def update_region(self, region_id: str, request: RegionRequest) -> Region:
        """Rename a region or edit its remarks."""
        region = await self._get_region(region_id)
        name = request.name.strip()
        await self._ensure_unique_region_name(name, exclude_id=region_id)
        region.name = name
        region.remarks = request.remarks
        await self._region_repository.update(region)
        return region

    async def toggle_region(self, region_id: str) -> Region:
        """Flip a region between active and inactive."""
        region = await self._get_region(region_id)
        region.is_active = not region.is_active
        await self._region_repository.update(region)
        log_event(
            component="directory",
            action="region_toggled",
            region_id=region_id,
            is_active=region.is_active,
        )
        return region

    async def delete_region(self, region_id: str) -> None:
        """Delete a region; users and leads keep their region references."""
        await self._region_repository.delete(region_id)
        log_event(component="directory", action="region_deleted", region_id=region_id)

    # Users

    async def get_user(self, user_id: str) -> User:
        user = await self._user_repository.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def list_users(self) -> list[User]:
        return await self._user_repository.list()

    async def create_user(self, request: CreateUserRequest) -> User:
        """
        Create an account with the identity provider and its user profile.

        Args:
            request: Account details and initial password

        Returns:
            Created user

        Raises:
            BusinessRuleError: If the email is already registered
        """
        _check_lock_in(request.default_lock_in_months)
        email = request.email.strip()
        subject_id = await self._identity_provider.create_account(email, request.password)
        user = User(
            id=subject_id,
            email=email,
            full_name=request.full_name.strip(),
            role=request.role,
            default_lock_in_months=request.default_lock_in_months,
            assigned_regions=list(request.assigned_regions),
        )
        await self._user_repository.add(user)
        log_event(
            component="directory", action="user_created", user_id=user.id, role=user.role.value
        )
        return user

    async def update_user(self, user_id: str, request: UpdateUserRequest) -> User:
        """Apply an admin edit; omitted fields are left unchanged."""
        user = await self.get_user(user_id)
        if request.full_name is not None:
            user.full_name = request.full_name.strip()
        if request.role is not None:
            user.role = request.role
        if request.default_lock_in_months is not None:
            _check_lock_in(request.default_lock_in_months)
            user.default_lock_in_months = request.default_lock_in_months
        if request.assigned_regions is not None:
            user.assigned_regions = list(request.assigned_regions)
        await self._user_repository.update(user)
        return user

    async def toggle_user(self, user_id: str) -> User:
        """Activate or deactivate an account."""
        user = await self.get_user(user_id)
        user.is_active = not user.is_active
        await self._user_repository.update(user)
        log_event(
            component="directory", action="user_toggled", user_id=user_id, is_active=user.is_active
        )
        return user

    async def bulk_update_roles(self, user_ids: list[str], role: UserRole) -> list[User]:
        """
        Set the same role on several users in one atomic write.

        Raises:
            NotFoundError: If any user does not exist (nobody is changed)
        """
        unique_ids = list(dict.fromkeys(user_ids))
        await self._user_repository.update_roles(unique_ids, role)
        log_event(
            component="directory",
            action="roles_updated",
            users_count=len(unique_ids),
            role=role.value,
        )
        return [await self.get_user(user_id) for user_id in unique_ids]

    async def bootstrap_admin(self, email: str, password: str, full_name: str) -> Optional[User]:
        """
        Create the first admin account when no admin exists yet.

        Args:
            email: Admin login email
            password: Admin password
            full_name: Admin display name

        Returns:
            Created admin, or None when an admin already exists or no email is configured
        """
        if not email or not password:
            return None
        if any(user.is_admin for user in await self._user_repository.list()):
            return None
        return await self.create_user(
            CreateUserRequest(
                email=email,
                password=password,
                full_name=full_name,
                role=UserRole.ADMIN,
            )
        )
