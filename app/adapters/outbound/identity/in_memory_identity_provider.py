"""In-memory identity provider adapter."""

import hashlib
import hmac
import secrets
import uuid
from typing import Optional

from app.application.ports.identity_provider import IdentityProvider
from app.domain.errors import BusinessRuleError
from app.infrastructure.logging.logger import log_event

PBKDF2_ITERATIONS = 120_000


class InMemoryIdentityProvider(IdentityProvider):
    """Email/password identity provider storing salted PBKDF2 hashes in memory."""

    def __init__(self) -> None:
        """Initialize in-memory provider."""
        # email (lower-cased) -> (subject id, salt, hash)
        self._accounts: dict[str, tuple[str, bytes, bytes]] = {}
        self.password_resets: list[str] = []

    @staticmethod
    def _hash(password: str, salt: bytes) -> bytes:
        return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)

    async def create_account(self, email: str, password: str) -> str:
        """
        Register credentials.

        Args:
            email: Login email
            password: Plain-text password

        Returns:
            Subject id assigned to the account

        Raises:
            BusinessRuleError: If the email is already registered
        """
        key = email.strip().lower()
        if key in self._accounts:
            raise BusinessRuleError(f"An account already exists for {email}")
        salt = secrets.token_bytes(16)
        subject_id = uuid.uuid4().hex
        self._accounts[key] = (subject_id, salt, self._hash(password, salt))
        return subject_id

    async def authenticate(self, email: str, password: str) -> Optional[str]:
        account = self._accounts.get(email.strip().lower())
        if account is None:
            return None
        subject_id, salt, expected = account
        if not hmac.compare_digest(self._hash(password, salt), expected):
            return None
        return subject_id

    async def send_password_reset(self, email: str) -> None:
        # No mail transport here; the request is recorded and logged
        if email.strip().lower() in self._accounts:
            self.password_resets.append(email)
        log_event(component="identity", action="password_reset_requested", email=email)
