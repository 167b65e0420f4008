"""
Password Service - email + password signup and signin.

Shares the session binding of the passkey ceremonies: a successful signup or
signin makes the user the session's principal.
"""

import logging

from passkey_auth.config import Settings, get_settings
from passkey_auth.core.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    UnauthenticatedError,
    WeakPasswordError,
)
from passkey_auth.core.security import (
    MAX_PASSWORD_BYTES,
    get_password_hash,
    password_too_long,
    verify_password,
)
from passkey_auth.core.session import SessionContext
from passkey_auth.models.orm.user import User
from passkey_auth.repositories.store import DuplicateRecordError, RecordStore

logger = logging.getLogger(__name__)


class PasswordService:
    """Password signup/signin and session identity helpers."""

    def __init__(self, store: RecordStore, settings: Settings | None = None):
        self.store = store
        self.settings = settings or get_settings()

    async def signup(
        self,
        session: SessionContext,
        email: str,
        password: str,
        display_name: str | None = None,
    ) -> str:
        """
        Create an account and sign the session in.

        Args:
            session: Current session
            email: Login identifier, stored exactly as given
            password: Plain text password
            display_name: Optional human-readable label

        Returns:
            The new account's email

        Raises:
            WeakPasswordError: If the password is too short or longer than bcrypt accepts
            DuplicateEmailError: If the email is already registered
        """
        if len(password) < self.settings.password_min_length:
            raise WeakPasswordError(
                f"Password must be at least {self.settings.password_min_length} characters"
            )
        if password_too_long(password):
            raise WeakPasswordError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

        if await self.store.get_user_by_email(email) is not None:
            raise DuplicateEmailError()

        try:
            user = await self.store.create_user(
                email=email,
                name=User.default_name(email),
                display_name=display_name,
                hashed_password=get_password_hash(password),
            )
        except DuplicateRecordError as e:
            # Lost a race with a concurrent signup for the same email
            raise DuplicateEmailError() from e

        await self.store.commit()
        await session.sign_in(user.id)
        logger.info(f"User signed up: {user.id}")
        return user.email

    async def signin(self, session: SessionContext, email: str, password: str) -> str:
        """
        Verify email and password and sign the session in.

        Returns:
            The account's email

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
        """
        user = await self.store.get_user_by_email(email)
        if user is None or not user.hashed_password:
            raise InvalidCredentialsError()

        # bcrypt cannot hash it, so it cannot match any stored hash
        if password_too_long(password):
            raise InvalidCredentialsError()

        if not verify_password(password, user.hashed_password):
            logger.warning(f"Failed password signin for user {user.id}")
            raise InvalidCredentialsError()

        await session.sign_in(user.id)
        logger.info(f"User signed in: {user.id}")
        return user.email

    async def signout(self, session: SessionContext) -> None:
        """Drop the session's identity and any pending challenge."""
        if session.user_id is not None:
            logger.info(f"User signed out: {session.user_id}")
        await session.sign_out()

    async def current_user(self, session: SessionContext) -> User:
        """
        Resolve the session's user.

        Raises:
            UnauthenticatedError: If the session is anonymous or its user is gone
        """
        if not session.is_authenticated:
            raise UnauthenticatedError()
        user = await self.store.get_user(session.user_id)
        if user is None:
            raise UnauthenticatedError("Session user no longer exists")
        return user
