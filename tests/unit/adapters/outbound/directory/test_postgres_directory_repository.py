"""Unit tests for Postgres user and region repositories using SQLite in-memory."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.adapters.outbound.directory.postgres_directory_repository import (
    PostgresRegionRepository,
    PostgresUserRepository,
)
from app.adapters.outbound.persistence.models import Base
from app.domain.entities.user import Region, User, UserRole
from app.domain.errors import NotFoundError


@pytest.fixture
def sqlite_engine():
    """Create SQLite in-memory engine for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture(autouse=True)
def patch_db_session(sqlite_engine, monkeypatch):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=sqlite_engine)
    monkeypatch.setattr(
        "app.adapters.outbound.directory.postgres_directory_repository.get_db_session",
        lambda: SessionLocal(),
    )


@pytest.fixture
def users():
    return PostgresUserRepository()


@pytest.fixture
def regions():
    return PostgresRegionRepository()


def make_user(user_id: str, email: str, offset_minutes: int = 0) -> User:
    return User(
        id=user_id,
        email=email,
        full_name=user_id.title(),
        role=UserRole.DISTRIBUTOR,
        default_lock_in_months=6,
        assigned_regions=["region_blr", "region_mum"],
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=offset_minutes),
    )


@pytest.mark.asyncio
async def test_user_round_trip(users):
    """Test that a stored user reads back with its regions and lock-in."""
    await users.add(make_user("ravi", "ravi@example.com"))

    stored = await users.get("ravi")

    assert stored.email == "ravi@example.com"
    assert stored.role == UserRole.DISTRIBUTOR
    assert stored.default_lock_in_months == 6
    assert stored.assigned_regions == ["region_blr", "region_mum"]
    assert stored.created_at.tzinfo is not None
    assert await users.get("nobody") is None


@pytest.mark.asyncio
async def test_user_update_and_missing_user(users):
    await users.add(make_user("ravi", "ravi@example.com"))
    user = await users.get("ravi")
    user.is_active = False

    await users.update(user)

    assert (await users.get("ravi")).is_active is False
    with pytest.raises(NotFoundError):
        await users.update(make_user("ghost", "ghost@example.com"))


@pytest.mark.asyncio
async def test_update_roles_is_all_or_nothing(users):
    """Test that an unknown id leaves every role untouched."""
    await users.add(make_user("ravi", "ravi@example.com"))
    await users.add(make_user("meera", "meera@example.com", offset_minutes=1))

    with pytest.raises(NotFoundError):
        await users.update_roles(["ravi", "ghost"], UserRole.USER)
    assert (await users.get("ravi")).role == UserRole.DISTRIBUTOR

    await users.update_roles(["ravi", "meera"], UserRole.USER)
    assert [user.role for user in await users.list()] == [UserRole.USER, UserRole.USER]


@pytest.mark.asyncio
async def test_list_users_in_creation_order(users):
    await users.add(make_user("meera", "meera@example.com", offset_minutes=5))
    await users.add(make_user("ravi", "ravi@example.com"))

    assert [user.id for user in await users.list()] == ["ravi", "meera"]


@pytest.mark.asyncio
async def test_region_crud(regions):
    """Test region add, update, list by name and delete."""
    await regions.add(Region(id="r2", name="Mumbai"))
    await regions.add(Region(id="r1", name="Bangalore", remarks="South"))

    region = await regions.get("r2")
    region.is_active = False
    await regions.update(region)

    listed = await regions.list()
    assert [item.name for item in listed] == ["Bangalore", "Mumbai"]
    assert listed[1].is_active is False
    assert listed[0].remarks == "South"

    await regions.delete("r1")
    assert await regions.get("r1") is None
    with pytest.raises(NotFoundError):
        await regions.delete("r1")
    with pytest.raises(NotFoundError):
        await regions.update(Region(id="r9", name="Delhi"))
