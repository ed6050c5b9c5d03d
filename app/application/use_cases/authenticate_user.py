"""Authentication gate: login, logout, password reset and session resolution."""

import logging

from app.application.dtos.directory import LoginResponse
from app.application.ports.directory_repository import UserRepository
from app.application.ports.identity_provider import IdentityProvider
from app.application.ports.session_store import SessionStore
from app.domain.entities.user import User
from app.domain.errors import AuthenticationError, InactiveAccountError
from app.infrastructure.logging.logger import log_event

DEACTIVATED_MESSAGE = (
    "Your account has been deactivated. Please contact admin to reactivate your account."
)


class AuthenticateUser:
    """Use case for signing users in and resolving their sessions."""

    def __init__(
        self,
        identity_provider: IdentityProvider,
        user_repository: UserRepository,
        session_store: SessionStore,
        idle_timeout_seconds: int = 1800,
    ) -> None:
        """
        Initialize use case.

        Args:
            identity_provider: Credential verification
            user_repository: User profiles
            session_store: Login sessions
            idle_timeout_seconds: Session idle timeout
        """
        self._identity_provider = identity_provider
        self._user_repository = user_repository
        self._session_store = session_store
        self._idle_timeout_seconds = idle_timeout_seconds

    async def login(self, email: str, password: str) -> LoginResponse:
        """
        Verify credentials and open a session.

        Args:
            email: Login email
            password: Password

        Returns:
            Session token and profile summary

        Raises:
            AuthenticationError: If the credentials are wrong or no profile exists
            InactiveAccountError: If the account is deactivated
        """
        subject_id = await self._identity_provider.authenticate(email, password)
        if subject_id is None:
            log_event(component="auth", action="login_failed", level=logging.WARNING, email=email)
            raise AuthenticationError("Invalid email or password")

        user = await self._user_repository.get(subject_id)
        if user is None:
            raise AuthenticationError("User profile not found. Please contact admin.")
        if not user.is_active:
            log_event(
                component="auth", action="login_inactive", level=logging.WARNING, user_id=user.id
            )
            raise InactiveAccountError(DEACTIVATED_MESSAGE)

        token = await self._session_store.create(user.id, self._idle_timeout_seconds)
        log_event(component="auth", action="login", user_id=user.id, role=user.role.value)
        return LoginResponse(token=token, user_id=user.id, role=user.role, full_name=user.full_name)

    async def logout(self, token: str) -> None:
        await self._session_store.delete(token)

    async def request_password_reset(self, email: str) -> None:
        await self._identity_provider.send_password_reset(email.strip())

    async def resolve_session(self, token: str) -> User:
        """
        Resolve a bearer token to the signed-in user, extending the session.

        A user deactivated after login loses the session on the next request.

        Args:
            token: Session token

        Returns:
            Active user

        Raises:
            AuthenticationError: If the session is unknown, expired or the user is gone
            InactiveAccountError: If the account was deactivated
        """
        user_id = await self._session_store.touch(token, self._idle_timeout_seconds)
        if user_id is None:
            raise AuthenticationError("Session expired. Please sign in again.")

        user = await self._user_repository.get(user_id)
        if user is None:
            await self._session_store.delete(token)
            raise AuthenticationError("User profile not found. Please contact admin.")
        if not user.is_active:
            await self._session_store.delete(token)
            raise InactiveAccountError(DEACTIVATED_MESSAGE)
        return user
