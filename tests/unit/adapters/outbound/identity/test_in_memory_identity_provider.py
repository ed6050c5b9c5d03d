"""Unit tests for in-memory identity provider."""

import pytest

from app.adapters.outbound.identity.in_memory_identity_provider import InMemoryIdentityProvider
from app.domain.errors import BusinessRuleError


@pytest.mark.asyncio
async def test_authenticate_with_matching_credentials():
    provider = InMemoryIdentityProvider()
    subject_id = await provider.create_account("Ravi@Example.com", "s3cret-pass")

    assert await provider.authenticate("ravi@example.com ", "s3cret-pass") == subject_id
    assert await provider.authenticate("ravi@example.com", "wrong") is None
    assert await provider.authenticate("nobody@example.com", "s3cret-pass") is None


@pytest.mark.asyncio
async def test_duplicate_email_is_refused():
    provider = InMemoryIdentityProvider()
    await provider.create_account("ravi@example.com", "s3cret-pass")

    with pytest.raises(BusinessRuleError):
        await provider.create_account("RAVI@example.com", "other-pass")


@pytest.mark.asyncio
async def test_password_reset_recorded_only_for_known_accounts():
    provider = InMemoryIdentityProvider()
    await provider.create_account("ravi@example.com", "s3cret-pass")

    await provider.send_password_reset("ravi@example.com")
    await provider.send_password_reset("nobody@example.com")

    assert provider.password_resets == ["ravi@example.com"]
