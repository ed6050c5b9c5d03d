"""Dependency injection factory functions."""

from typing import Optional

from app.adapters.outbound.bulk_upload import (
    InMemoryBulkUploadBatchRepository,
    RedisBulkUploadBatchRepository,
)
from app.adapters.outbound.directory import (
    InMemoryRegionRepository,
    InMemoryUserRepository,
    PostgresRegionRepository,
    PostgresUserRepository,
)
from app.adapters.outbound.identity.in_memory_identity_provider import InMemoryIdentityProvider
from app.adapters.outbound.lead import (
    InMemoryLeadRepository,
    PostgresLeadRepository,
)
from app.adapters.outbound.notification import (
    InMemoryNotificationRepository,
    PostgresNotificationRepository,
)
from app.adapters.outbound.places.google_places_client import GooglePlacesClient
from app.adapters.outbound.places.noop_place_search_client import NoOpPlaceSearchClient
from app.adapters.outbound.session import InMemorySessionStore, RedisSessionStore
from app.application.ports.bulk_upload_batch_repository import BulkUploadBatchRepository
from app.application.ports.directory_repository import RegionRepository, UserRepository
from app.application.ports.identity_provider import IdentityProvider
from app.application.ports.lead_repository import LeadRepository
from app.application.ports.notification_repository import NotificationRepository
from app.application.ports.place_search_client import PlaceSearchClient
from app.application.ports.session_store import SessionStore
from app.application.use_cases.authenticate_user import AuthenticateUser
from app.application.use_cases.bulk_upload_pipeline import BulkUploadPipeline
from app.application.use_cases.check_duplicate_leads import CheckDuplicateLeads
from app.application.use_cases.dashboard_stats import DashboardStats
from app.application.use_cases.lead_lifecycle import LeadLifecycleService
from app.application.use_cases.manage_directory import DirectoryService
from app.application.use_cases.notification_inbox import NotificationInbox
from app.infrastructure.config.settings import settings


def _require_database_url(setting_name: str) -> None:
    if not settings.database_url:
        raise ValueError(f"DATABASE_URL is required when {setting_name}=postgres")


def create_notification_repository() -> NotificationRepository:
    """
    Factory function to create notification repository.

    The SQL lead store writes assignment notifications in its own transaction, so
    notifications are kept in SQL whenever either repository setting is postgres.

    Returns:
        NotificationRepository instance
    """
    if settings.lead_repository == "postgres":
        _require_database_url("LEAD_REPOSITORY")
        return PostgresNotificationRepository()
    if settings.directory_repository == "postgres":
        _require_database_url("DIRECTORY_REPOSITORY")
        return PostgresNotificationRepository()
    return InMemoryNotificationRepository()


def create_lead_repository(
    notification_repository: Optional[NotificationRepository] = None,
) -> LeadRepository:
    """
    Factory function to create lead repository.

    Args:
        notification_repository: Store that receives assignment notifications
            (in-memory adapter only; the SQL adapter writes them in its own transaction)

    Returns:
        LeadRepository instance
    """
    if settings.lead_repository == "postgres":
        _require_database_url("LEAD_REPOSITORY")
        return PostgresLeadRepository()
    return InMemoryLeadRepository(notification_repository=notification_repository)


def create_user_repository() -> UserRepository:
    """
    Factory function to create user repository.

    Returns:
        UserRepository instance
    """
    if settings.directory_repository == "postgres":
        _require_database_url("DIRECTORY_REPOSITORY")
        return PostgresUserRepository()
    return InMemoryUserRepository()


def create_region_repository() -> RegionRepository:
    """
    Factory function to create region repository.

    Returns:
        RegionRepository instance
    """
    if settings.directory_repository == "postgres":
        _require_database_url("DIRECTORY_REPOSITORY")
        return PostgresRegionRepository()
    return InMemoryRegionRepository()


def create_session_store() -> SessionStore:
    """
    Factory function to create session store.

    Returns:
        SessionStore instance (Redis if configured, otherwise in-memory)
    """
    if settings.session_store == "redis":
        return RedisSessionStore(settings.redis_url)
    return InMemorySessionStore()


def create_bulk_batch_repository() -> BulkUploadBatchRepository:
    """
    Factory function to create bulk upload batch store.

    Returns:
        BulkUploadBatchRepository instance
    """
    if settings.bulk_batch_store == "redis":
        return RedisBulkUploadBatchRepository(
            settings.redis_url, ttl_seconds=settings.bulk_batch_ttl_seconds
        )
    return InMemoryBulkUploadBatchRepository()


def create_place_search_client() -> PlaceSearchClient:
    """
    Factory function to create place search client.

    Returns:
        Google Places client when an API key is set, otherwise a client that never matches
    """
    if not settings.google_places_api_key:
        return NoOpPlaceSearchClient()
    return GooglePlacesClient(
        api_key=settings.google_places_api_key,
        base_url=settings.google_places_base_url,
        timeout_seconds=settings.google_places_timeout_seconds,
        country=settings.google_places_region,
    )


def create_identity_provider() -> IdentityProvider:
    """
    Factory function to create identity provider.

    Returns:
        IdentityProvider instance
    """
    return InMemoryIdentityProvider()


def create_lead_lifecycle_service(
    lead_repository: LeadRepository, user_repository: UserRepository
) -> LeadLifecycleService:
    """
    Factory function to create the lead lifecycle service.

    Args:
        lead_repository: Lead record store
        user_repository: User directory

    Returns:
        LeadLifecycleService instance
    """
    return LeadLifecycleService(
        lead_repository,
        user_repository,
        CheckDuplicateLeads(lead_repository),
        default_lock_in_months=settings.default_lock_in_months,
    )


def create_authenticate_user(
    identity_provider: IdentityProvider,
    user_repository: UserRepository,
    session_store: SessionStore,
) -> AuthenticateUser:
    """Factory function to create the login/session use case."""
    return AuthenticateUser(
        identity_provider,
        user_repository,
        session_store,
        idle_timeout_seconds=settings.session_idle_timeout_seconds,
    )


def create_bulk_upload_pipeline(
    batch_repository: BulkUploadBatchRepository,
    lead_repository: LeadRepository,
    user_repository: UserRepository,
    region_repository: RegionRepository,
    place_search_client: PlaceSearchClient,
) -> BulkUploadPipeline:
    """
    Factory function to create the bulk upload pipeline.

    Returns:
        BulkUploadPipeline instance
    """
    return BulkUploadPipeline(
        batch_repository,
        lead_repository,
        user_repository,
        region_repository,
        place_search_client,
        row_delay_seconds=settings.bulk_upload_row_delay_seconds,
        default_to_first_region=settings.bulk_upload_default_to_first_region,
    )


class Services:
    """Use cases sharing one set of adapters."""

    def __init__(self) -> None:
        """Create adapters from settings and wire the use cases over them."""
        self.notification_repository = create_notification_repository()
        self.lead_repository = create_lead_repository(self.notification_repository)
        self.user_repository = create_user_repository()
        self.region_repository = create_region_repository()
        self.session_store = create_session_store()
        self.batch_repository = create_bulk_batch_repository()
        self.place_search_client = create_place_search_client()
        self.identity_provider = create_identity_provider()

        self.lifecycle = create_lead_lifecycle_service(self.lead_repository, self.user_repository)
        self.duplicate_checker = CheckDuplicateLeads(self.lead_repository)
        self.directory = DirectoryService(
            self.user_repository, self.region_repository, self.identity_provider
        )
        self.auth = create_authenticate_user(
            self.identity_provider, self.user_repository, self.session_store
        )
        self.notifications = NotificationInbox(self.notification_repository)
        self.dashboard = DashboardStats(self.lead_repository, self.user_repository)
        self.bulk_upload = create_bulk_upload_pipeline(
            self.batch_repository,
            self.lead_repository,
            self.user_repository,
            self.region_repository,
            self.place_search_client,
        )
