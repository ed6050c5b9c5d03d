"""User and region repository adapters."""

from app.adapters.outbound.directory.directory_repository import (
    InMemoryRegionRepository,
    InMemoryUserRepository,
)
from app.adapters.outbound.directory.postgres_directory_repository import (
    PostgresRegionRepository,
    PostgresUserRepository,
)

__all__ = [
    "InMemoryRegionRepository",
    "InMemoryUserRepository",
    "PostgresRegionRepository",
    "PostgresUserRepository",
]
