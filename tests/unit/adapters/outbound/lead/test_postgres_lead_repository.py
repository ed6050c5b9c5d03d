"""Unit tests for Postgres lead repository using SQLite in-memory."""

import copy
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.adapters.outbound.lead.postgres_lead_repository import PostgresLeadRepository
from app.adapters.outbound.notification.postgres_notification_repository import (
    PostgresNotificationRepository,
)
from app.adapters.outbound.persistence.models import Base
from app.domain.entities.lead import Attachment, Lead, LeadUpdate
from app.domain.entities.notification import Notification
from app.domain.errors import ConflictError, NotFoundError
from app.domain.value_objects.lead_status import LeadStage, LeadStatus

CREATED_AT = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def sqlite_engine():
    """Create SQLite in-memory engine for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def session_factory(sqlite_engine, monkeypatch):
    """Route both SQL repositories to the SQLite engine."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=sqlite_engine)

    def get_test_db_session():
        return SessionLocal()

    monkeypatch.setattr(
        "app.adapters.outbound.lead.postgres_lead_repository.get_db_session",
        get_test_db_session,
    )
    monkeypatch.setattr(
        "app.adapters.outbound.notification.postgres_notification_repository.get_db_session",
        get_test_db_session,
    )
    return SessionLocal


@pytest.fixture
def repository(session_factory):
    return PostgresLeadRepository()


@pytest.fixture
def notification_repository(session_factory):
    return PostgresNotificationRepository()


def make_lead(lead_id: str = "lead_1", **overrides) -> Lead:
    values = {
        "id": lead_id,
        "school_name": "Greenwood High",
        "created_by": "user_ravi",
        "region_id": "region_blr",
        "region_name": "Bangalore",
        "address": "12 MG Road",
        "zip_code": "560001",
        "contact_person": "Anita Rao",
        "contact_email": "anita@greenwood.edu",
        "contact_phone": "9876543210",
        "created_at": CREATED_AT,
    }
    values.update(overrides)
    return Lead(**values)


@pytest.mark.asyncio
async def test_add_and_get_round_trip(repository):
    """Test that a stored lead reads back with its history and aware datetimes."""
    lead = make_lead(
        status=LeadStatus.LOCKED,
        stage=LeadStage.DEMO_SCHEDULED,
        probability=40,
        assigned_to_user_id="user_ravi",
        assigned_to_name="Ravi Kumar",
        locked_until=CREATED_AT + timedelta(days=90),
        is_chain=True,
        chain_name="Greenwood Group",
        updates=[
            LeadUpdate(
                id="upd_1",
                remarks="Demo booked for Monday",
                updated_by="user_ravi",
                status=LeadStatus.LOCKED,
                stage=LeadStage.DEMO_SCHEDULED,
                timestamp=CREATED_AT + timedelta(days=1),
                stage_transition=LeadStage.DEMO_SCHEDULED,
                attachments=[Attachment(name="brochure.pdf", url="https://files/brochure.pdf")],
                probability=40,
            )
        ],
    )

    await repository.add(lead)
    stored = await repository.get("lead_1")

    assert stored is not None
    assert stored.school_name == "Greenwood High"
    assert stored.status == LeadStatus.LOCKED
    assert stored.stage == LeadStage.DEMO_SCHEDULED
    assert stored.chain_name == "Greenwood Group"
    assert stored.created_at == CREATED_AT
    assert stored.created_at.tzinfo is not None
    assert stored.locked_until == CREATED_AT + timedelta(days=90)
    assert stored.version == 0
    assert len(stored.updates) == 1
    assert stored.updates[0].stage_transition == LeadStage.DEMO_SCHEDULED
    assert stored.updates[0].attachments[0].name == "brochure.pdf"
    assert stored.updates[0].timestamp.tzinfo is not None


@pytest.mark.asyncio
async def test_get_returns_none_when_missing(repository):
    assert await repository.get("missing") is None


@pytest.mark.asyncio
async def test_update_increments_version(repository):
    """Test that a conditional update writes the row and bumps its version."""
    await repository.add(make_lead())
    lead = await repository.get("lead_1")
    lead.reject()

    stored = await repository.update(lead, expected_status=LeadStatus.PENDING)

    assert stored.status == LeadStatus.POOL
    assert stored.version == 1
    assert (await repository.get("lead_1")).version == 1


@pytest.mark.asyncio
async def test_update_with_stale_version_raises_conflict(repository):
    """Test that a writer holding an old version loses."""
    await repository.add(make_lead())
    first = await repository.get("lead_1")
    stale = copy.deepcopy(first)

    first.remarks = "first writer"
    await repository.update(first)

    stale.remarks = "second writer"
    with pytest.raises(ConflictError):
        await repository.update(stale)

    assert (await repository.get("lead_1")).remarks == "first writer"


@pytest.mark.asyncio
async def test_update_with_unexpected_status_raises_conflict(repository):
    await repository.add(make_lead(status=LeadStatus.POOL))
    lead = await repository.get("lead_1")

    with pytest.raises(ConflictError):
        await repository.update(lead, expected_status=LeadStatus.PENDING)

    assert (await repository.get("lead_1")).version == 0


@pytest.mark.asyncio
async def test_update_missing_lead_raises_not_found(repository):
    with pytest.raises(NotFoundError):
        await repository.update(make_lead("ghost"))


@pytest.mark.asyncio
async def test_update_many_writes_leads_and_notification_together(
    repository, notification_repository
):
    """Test that a bulk write stores every lead plus the notification."""
    await repository.add(make_lead("lead_1", status=LeadStatus.POOL))
    await repository.add(make_lead("lead_2", status=LeadStatus.POOL, school_name="Oakridge"))
    leads = [await repository.get("lead_1"), await repository.get("lead_2")]
    for lead in leads:
        lead.assigned_to_user_id = "user_meera"
        lead.status = LeadStatus.LOCKED

    notification = Notification(
        id="notif_1",
        user_id="user_meera",
        title="Leads assigned",
        message="2 leads were assigned to you",
    )
    await repository.update_many(
        [(lead, LeadStatus.POOL) for lead in leads], notification=notification
    )

    stored = await repository.find(assigned_to_user_id="user_meera")
    assert {lead.id for lead in stored} == {"lead_1", "lead_2"}
    assert all(lead.version == 1 for lead in stored)
    inbox = await notification_repository.list_for_user("user_meera")
    assert [item.id for item in inbox] == ["notif_1"]


@pytest.mark.asyncio
async def test_update_many_is_all_or_nothing(repository, notification_repository):
    """Test that one conflicting lead rolls back the whole batch."""
    await repository.add(make_lead("lead_1", status=LeadStatus.POOL))
    await repository.add(make_lead("lead_2", status=LeadStatus.LOCKED, school_name="Oakridge"))
    leads = [await repository.get("lead_1"), await repository.get("lead_2")]
    for lead in leads:
        lead.assigned_to_user_id = "user_meera"

    notification = Notification(
        id="notif_1", user_id="user_meera", title="Leads assigned", message="2 leads"
    )
    with pytest.raises(ConflictError):
        await repository.update_many(
            [(lead, LeadStatus.POOL) for lead in leads], notification=notification
        )

    assert (await repository.get("lead_1")).assigned_to_user_id is None
    assert (await repository.get("lead_1")).version == 0
    assert await notification_repository.list_for_user("user_meera") == []


@pytest.mark.asyncio
async def test_find_filters_and_orders_newest_first(repository):
    """Test equality filters and created_at descending order."""
    await repository.add(make_lead("old", created_at=CREATED_AT))
    await repository.add(make_lead("new", created_at=CREATED_AT + timedelta(days=2)))
    await repository.add(
        make_lead("other", zip_code="400001", created_at=CREATED_AT + timedelta(days=1))
    )

    matches = await repository.find(school_name="Greenwood High", zip_code="560001")
    everything = await repository.list()

    assert [lead.id for lead in matches] == ["new", "old"]
    assert [lead.id for lead in everything] == ["new", "other", "old"]
    assert await repository.find(status=LeadStatus.POOL) == []
