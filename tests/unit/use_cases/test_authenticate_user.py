"""Unit tests for AuthenticateUser."""

import pytest
import pytest_asyncio

from app.adapters.outbound.directory import InMemoryUserRepository
from app.adapters.outbound.identity.in_memory_identity_provider import InMemoryIdentityProvider
from app.adapters.outbound.session import InMemorySessionStore
from app.application.use_cases.authenticate_user import AuthenticateUser
from app.domain.entities.user import User, UserRole
from app.domain.errors import AuthenticationError, InactiveAccountError


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def identity_provider():
    return InMemoryIdentityProvider()


@pytest.fixture
def user_repository():
    return InMemoryUserRepository()


@pytest_asyncio.fixture
async def ravi(identity_provider, user_repository):
    subject_id = await identity_provider.create_account("ravi@example.com", "secret1")
    user = User(id=subject_id, email="ravi@example.com", full_name="Ravi Kumar")
    await user_repository.add(user)
    return user


@pytest.fixture
def auth(identity_provider, user_repository, clock):
    return AuthenticateUser(
        identity_provider, user_repository, InMemorySessionStore(clock=clock), 1800
    )


@pytest.mark.asyncio
async def test_login_returns_session(auth, ravi):
    """Test a successful login."""
    response = await auth.login("ravi@example.com", "secret1")

    assert response.user_id == ravi.id
    assert response.role == UserRole.DISTRIBUTOR
    assert (await auth.resolve_session(response.token)).id == ravi.id


@pytest.mark.asyncio
async def test_login_wrong_password(auth, ravi):
    """Test that wrong credentials are refused."""
    with pytest.raises(AuthenticationError, match="Invalid email or password"):
        await auth.login("ravi@example.com", "wrong")


@pytest.mark.asyncio
async def test_login_without_profile(auth, identity_provider):
    """Test an account that has no user profile."""
    await identity_provider.create_account("ghost@example.com", "secret1")

    with pytest.raises(AuthenticationError, match="User profile not found"):
        await auth.login("ghost@example.com", "secret1")


@pytest.mark.asyncio
async def test_login_inactive_account(auth, ravi, user_repository):
    """Test that a deactivated user cannot sign in."""
    ravi.is_active = False
    await user_repository.update(ravi)

    with pytest.raises(InactiveAccountError, match="deactivated"):
        await auth.login("ravi@example.com", "secret1")


@pytest.mark.asyncio
async def test_session_slides_and_expires(auth, ravi, clock):
    """Test the 30 minute idle timeout."""
    token = (await auth.login("ravi@example.com", "secret1")).token

    clock.now += 1700
    await auth.resolve_session(token)
    clock.now += 1700
    await auth.resolve_session(token)

    clock.now += 1801
    with pytest.raises(AuthenticationError, match="Session expired"):
        await auth.resolve_session(token)


@pytest.mark.asyncio
async def test_deactivation_ends_existing_session(auth, ravi, user_repository):
    """Test that a user deactivated after login is signed out."""
    token = (await auth.login("ravi@example.com", "secret1")).token
    ravi.is_active = False
    await user_repository.update(ravi)

    with pytest.raises(InactiveAccountError):
        await auth.resolve_session(token)
    with pytest.raises(AuthenticationError):
        await auth.resolve_session(token)


@pytest.mark.asyncio
async def test_logout(auth, ravi):
    """Test that logout drops the session."""
    token = (await auth.login("ravi@example.com", "secret1")).token

    await auth.logout(token)

    with pytest.raises(AuthenticationError):
        await auth.resolve_session(token)


@pytest.mark.asyncio
async def test_password_reset_is_recorded(auth, ravi, identity_provider):
    """Test that a reset for a known email is recorded."""
    await auth.request_password_reset(" ravi@example.com ")
    await auth.request_password_reset("nobody@example.com")

    assert identity_provider.password_resets == ["ravi@example.com"]
