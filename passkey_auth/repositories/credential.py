"""
Credential Repository

Provides database operations for passkey credentials, including the
conditional counter update used for replay detection.
"""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select, update

from passkey_auth.models.orm.credential import Credential
from passkey_auth.repositories.base import BaseRepository
from passkey_auth.repositories.store import CounterAdvance


class CredentialRepository(BaseRepository[Credential]):
    """Repository for Credential model operations."""

    model = Credential

    async def list_for_user(self, user_id: UUID) -> list[Credential]:
        """
        Get all credentials owned by a user.

        Args:
            user_id: Owner's user ID

        Returns:
            Credentials ordered by creation time
        """
        result = await self.session.execute(
            select(Credential)
            .where(Credential.user_id == user_id)
            .order_by(Credential.created_at.asc())
        )
        return list(result.scalars().all())

    async def advance_counter(self, credential_id: str, new_counter: int) -> CounterAdvance:
        """
        Compare-and-set the signature counter in one UPDATE statement.

        The WHERE clause carries the monotonicity check, so two concurrent
        sign-ins reporting the same counter cannot both succeed: the second
        UPDATE re-evaluates the predicate after the first commits.

        Args:
            credential_id: Credential to update
            new_counter: Counter reported by the authenticator

        Returns:
            CounterAdvance describing the outcome
        """
        result = await self.session.execute(
            update(Credential)
            .where(Credential.id == credential_id, Credential.counter < new_counter)
            .values(counter=new_counter, last_used_at=datetime.now(UTC))
            .returning(Credential.counter)
            .execution_options(synchronize_session=False)
        )
        stored = result.scalar_one_or_none()
        if stored is not None:
            return CounterAdvance(accepted=True, counter=stored)

        current = await self.session.execute(
            select(Credential.counter).where(Credential.id == credential_id)
        )
        return CounterAdvance(accepted=False, counter=current.scalar_one_or_none() or 0)

    async def mark_used(self, credential_id: str) -> None:
        """Stamp last_used_at on a credential."""
        await self.session.execute(
            update(Credential)
            .where(Credential.id == credential_id)
            .values(last_used_at=datetime.now(UTC))
            .execution_options(synchronize_session=False)
        )
