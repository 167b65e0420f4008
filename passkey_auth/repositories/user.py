"""
User Repository

Provides database operations for the User model.
"""

from sqlalchemy import select

from passkey_auth.models.orm.user import User
from passkey_auth.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User model operations."""

    model = User

    async def get_by_email(self, email: str) -> User | None:
        """
        Get user by email address.

        Args:
            email: Email address, compared exactly

        Returns:
            User or None if not found
        """
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()
