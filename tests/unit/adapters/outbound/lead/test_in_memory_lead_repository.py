"""Unit tests for in-memory lead repository."""

from datetime import datetime, timedelta, timezone

import pytest

from app.adapters.outbound.lead.lead_repository import InMemoryLeadRepository
from app.adapters.outbound.notification.notification_repository import (
    InMemoryNotificationRepository,
)
from app.domain.entities.lead import Lead
from app.domain.entities.notification import Notification
from app.domain.errors import ConflictError, NotFoundError
from app.domain.value_objects.lead_status import LeadStatus

CREATED_AT = datetime(2024, 3, 1, tzinfo=timezone.utc)


def make_lead(lead_id: str, **overrides) -> Lead:
    values = {
        "id": lead_id,
        "school_name": "Greenwood High",
        "created_by": "user_ravi",
        "zip_code": "560001",
        "created_at": CREATED_AT,
    }
    values.update(overrides)
    return Lead(**values)


@pytest.fixture
def notifications():
    return InMemoryNotificationRepository()


@pytest.fixture
def repository(notifications):
    return InMemoryLeadRepository(notification_repository=notifications)


@pytest.mark.asyncio
async def test_get_returns_detached_copy(repository):
    """Test that mutating a fetched lead does not touch storage."""
    await repository.add(make_lead("lead_1"))

    fetched = await repository.get("lead_1")
    fetched.school_name = "Changed"

    assert (await repository.get("lead_1")).school_name == "Greenwood High"


@pytest.mark.asyncio
async def test_add_rejects_existing_id(repository):
    await repository.add(make_lead("lead_1"))

    with pytest.raises(ConflictError):
        await repository.add(make_lead("lead_1"))


@pytest.mark.asyncio
async def test_update_checks_version_and_status(repository):
    """Test the compare-and-swap preconditions."""
    await repository.add(make_lead("lead_1"))
    lead = await repository.get("lead_1")

    stored = await repository.update(lead, expected_status=LeadStatus.PENDING)
    assert stored.version == 1

    with pytest.raises(ConflictError):
        await repository.update(lead)  # still at version 0

    with pytest.raises(ConflictError):
        await repository.update(stored, expected_status=LeadStatus.POOL)

    with pytest.raises(NotFoundError):
        await repository.update(make_lead("ghost"))


@pytest.mark.asyncio
async def test_update_many_validates_everything_before_writing(repository, notifications):
    await repository.add(make_lead("lead_1", status=LeadStatus.POOL))
    await repository.add(make_lead("lead_2", status=LeadStatus.LOCKED))
    leads = [await repository.get("lead_1"), await repository.get("lead_2")]
    notification = Notification(id="n1", user_id="user_meera", title="Assigned", message="2")

    with pytest.raises(ConflictError):
        await repository.update_many(
            [(lead, LeadStatus.POOL) for lead in leads], notification=notification
        )

    assert (await repository.get("lead_1")).version == 0
    assert await notifications.list_for_user("user_meera") == []


@pytest.mark.asyncio
async def test_update_many_stores_notification(repository, notifications):
    await repository.add(make_lead("lead_1", status=LeadStatus.POOL))
    lead = await repository.get("lead_1")
    notification = Notification(id="n1", user_id="user_meera", title="Assigned", message="1")

    await repository.update_many([(lead, LeadStatus.POOL)], notification=notification)

    assert (await repository.get("lead_1")).version == 1
    assert len(await notifications.list_for_user("user_meera")) == 1


@pytest.mark.asyncio
async def test_find_matches_all_given_fields_newest_first(repository):
    await repository.add(make_lead("a", created_at=CREATED_AT))
    await repository.add(make_lead("b", created_at=CREATED_AT + timedelta(hours=1)))
    await repository.add(make_lead("c", zip_code="400001"))

    matches = await repository.find(school_name="Greenwood High", zip_code="560001")

    assert [lead.id for lead in matches] == ["b", "a"]
