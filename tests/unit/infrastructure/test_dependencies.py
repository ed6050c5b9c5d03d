"""Unit tests for adapter wiring."""

import asyncio
from datetime import datetime, timezone

import pytest

from app.adapters.outbound.notification import (
    InMemoryNotificationRepository,
    PostgresNotificationRepository,
)
from app.domain.entities.lead import Lead
from app.domain.entities.user import User, UserRole
from app.domain.value_objects.lead_status import LeadStatus
from app.infrastructure import db
from app.infrastructure.config.settings import settings
from app.infrastructure.wiring.dependencies import Services, create_notification_repository

ADMIN = User(id="u_admin", email="admin@example.com", full_name="Admin", role=UserRole.ADMIN)
RAVI = User(id="u_ravi", email="ravi@example.com", full_name="Ravi Kumar")


@pytest.fixture
def sqlite_settings(monkeypatch):
    """Point the SQL adapters at a fresh in-memory SQLite database."""
    monkeypatch.setattr(settings, "database_url", "sqlite://")
    monkeypatch.setattr(db, "_engine", None)
    monkeypatch.setattr(db, "_SessionLocal", None)


def test_notifications_in_memory_by_default(monkeypatch):
    monkeypatch.setattr(settings, "lead_repository", "in_memory")
    monkeypatch.setattr(settings, "directory_repository", "in_memory")

    assert isinstance(create_notification_repository(), InMemoryNotificationRepository)


@pytest.mark.parametrize(
    "lead_repository,directory_repository",
    [("postgres", "in_memory"), ("in_memory", "postgres"), ("postgres", "postgres")],
)
def test_notifications_follow_any_sql_store(
    monkeypatch, sqlite_settings, lead_repository, directory_repository
):
    monkeypatch.setattr(settings, "lead_repository", lead_repository)
    monkeypatch.setattr(settings, "directory_repository", directory_repository)

    assert isinstance(create_notification_repository(), PostgresNotificationRepository)


def test_sql_notifications_require_database_url(monkeypatch):
    monkeypatch.setattr(settings, "lead_repository", "postgres")
    monkeypatch.setattr(settings, "directory_repository", "in_memory")
    monkeypatch.setattr(settings, "database_url", "")

    with pytest.raises(ValueError, match="LEAD_REPOSITORY"):
        create_notification_repository()


def test_assignment_notification_reaches_inbox_with_sql_leads(monkeypatch, sqlite_settings):
    """Test that SQL leads with an in-memory directory still deliver assignment notices."""
    monkeypatch.setattr(settings, "lead_repository", "postgres")
    monkeypatch.setattr(settings, "directory_repository", "in_memory")
    services = Services()
    db.create_schema()

    async def scenario():
        await services.user_repository.add(RAVI)
        await services.lead_repository.add(
            Lead(
                id="lead_1",
                school_name="Greenwood High",
                created_by="u_admin",
                region_id="region_blr",
                region_name="Bengaluru",
                address="Sarjapur Road",
                zip_code="560001",
                contact_person="A. Rao",
                status=LeadStatus.POOL,
                created_at=datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc),
            )
        )
        await services.lifecycle.assign_leads(["lead_1"], RAVI.id, 3, ADMIN)
        return await services.notifications.list(RAVI.id)

    inbox = asyncio.run(scenario())

    assert len(inbox) == 1
    assert inbox[0].user_id == RAVI.id
