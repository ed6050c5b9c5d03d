"""Application settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings."""

    debug_mode: bool = False
    lead_repository: str = "in_memory"  # in_memory or postgres
    directory_repository: str = "in_memory"  # in_memory or postgres (users, regions, notifications)
    database_url: str = ""  # Required when either repository setting is postgres
    redis_url: str = "redis://localhost:6379/0"
    session_store: str = "in_memory"  # in_memory or redis
    session_idle_timeout_seconds: int = 1800  # 30 minutes
    bulk_batch_store: str = "in_memory"  # in_memory or redis
    bulk_batch_ttl_seconds: int = 86400  # 24 hours
    google_places_api_key: str = ""
    google_places_base_url: str = "https://maps.googleapis.com/maps/api/place"
    google_places_timeout_seconds: int = 10
    google_places_region: str = "in"
    bulk_upload_row_delay_seconds: float = 0.5
    bulk_upload_default_to_first_region: bool = True
    default_lock_in_months: int = 3
    bootstrap_admin_email: str = ""
    bootstrap_admin_password: str = ""
    bootstrap_admin_name: str = "Administrator"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
    )


settings = Settings()
