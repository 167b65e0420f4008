"""
SQL Record Store

RecordStore backed by PostgreSQL through the SQLAlchemy repositories. The
caller owns the transaction (see core.dependencies.get_record_store).
"""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from passkey_auth.models.orm.credential import Credential
from passkey_auth.models.orm.user import User
from passkey_auth.repositories.credential import CredentialRepository
from passkey_auth.repositories.store import CounterAdvance, RecordStore
from passkey_auth.repositories.user import UserRepository


class SqlRecordStore(RecordStore):
    """RecordStore over one AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = UserRepository(session)
        self.credentials = CredentialRepository(session)

    async def create_user(
        self,
        email: str,
        name: str,
        display_name: str | None = None,
        hashed_password: str | None = None,
    ) -> User:
        user = User(
            id=uuid4(),
            email=email,
            name=name,
            display_name=display_name,
            hashed_password=hashed_password,
            created_at=datetime.now(UTC),
        )
        return await self.users.create(user)

    async def get_user(self, user_id: UUID) -> User | None:
        return await self.users.get_by_id(user_id)

    async def get_user_by_email(self, email: str) -> User | None:
        return await self.users.get_by_email(email)

    async def create_credential(self, credential: Credential) -> Credential:
        return await self.credentials.create(credential)

    async def get_credential(self, credential_id: str) -> Credential | None:
        return await self.credentials.get_by_id(credential_id)

    async def list_credentials(self, user_id: UUID) -> list[Credential]:
        return await self.credentials.list_for_user(user_id)

    async def advance_counter(self, credential_id: str, new_counter: int) -> CounterAdvance:
        return await self.credentials.advance_counter(credential_id, new_counter)

    async def mark_credential_used(self, credential_id: str) -> None:
        await self.credentials.mark_used(credential_id)

    async def commit(self) -> None:
        await self.session.commit()
