"""Identity provider port."""

from abc import ABC, abstractmethod
from typing import Optional


class IdentityProvider(ABC):
    """Port interface for the email/password identity provider."""

    @abstractmethod
    async def create_account(self, email: str, password: str) -> str:
        """
        Register credentials.

        Args:
            email: Login email
            password: Plain-text password

        Returns:
            Opaque subject id assigned by the provider

        Raises:
            BusinessRuleError: If the email is already registered
        """
        pass

    @abstractmethod
    async def authenticate(self, email: str, password: str) -> Optional[str]:
        """
        Verify credentials.

        Returns:
            Subject id on success, None when the credentials are wrong
        """
        pass

    @abstractmethod
    async def send_password_reset(self, email: str) -> None:
        """Trigger a password reset for the email (no-op for unknown emails)."""
        pass
