"""
Memory Record Store

RecordStore kept in process memory, for local development and tests. It
honours the same uniqueness and counter guarantees as the SQL store, with an
asyncio lock standing in for row locking.
"""

import asyncio
from datetime import UTC, datetime
from uuid import UUID, uuid4

from passkey_auth.models.orm.credential import Credential
from passkey_auth.models.orm.user import User
from passkey_auth.repositories.store import CounterAdvance, DuplicateRecordError, RecordStore


class MemoryRecordStore(RecordStore):
    """Dictionaries keyed the way the SQL tables are indexed."""

    def __init__(self) -> None:
        self.users: dict[UUID, User] = {}
        self.users_by_email: dict[str, UUID] = {}
        self.credentials: dict[str, Credential] = {}
        self._lock = asyncio.Lock()

    async def create_user(
        self,
        email: str,
        name: str,
        display_name: str | None = None,
        hashed_password: str | None = None,
    ) -> User:
        async with self._lock:
            if email in self.users_by_email:
                raise DuplicateRecordError(f"email {email!r} already registered")
            user = User(
                id=uuid4(),
                email=email,
                name=name,
                display_name=display_name,
                hashed_password=hashed_password,
                created_at=datetime.now(UTC),
            )
            self.users[user.id] = user
            self.users_by_email[email] = user.id
            return user

    async def get_user(self, user_id: UUID) -> User | None:
        return self.users.get(user_id)

    async def get_user_by_email(self, email: str) -> User | None:
        user_id = self.users_by_email.get(email)
        return self.users.get(user_id) if user_id else None

    async def create_credential(self, credential: Credential) -> Credential:
        async with self._lock:
            if credential.id in self.credentials:
                raise DuplicateRecordError(f"credential {credential.id!r} already registered")
            if credential.created_at is None:
                credential.created_at = datetime.now(UTC)
            self.credentials[credential.id] = credential
            return credential

    async def get_credential(self, credential_id: str) -> Credential | None:
        return self.credentials.get(credential_id)

    async def list_credentials(self, user_id: UUID) -> list[Credential]:
        owned = [c for c in self.credentials.values() if c.user_id == user_id]
        return sorted(owned, key=lambda c: c.created_at)

    async def advance_counter(self, credential_id: str, new_counter: int) -> CounterAdvance:
        async with self._lock:
            credential = self.credentials.get(credential_id)
            if credential is None:
                return CounterAdvance(accepted=False, counter=0)
            if credential.counter >= new_counter:
                return CounterAdvance(accepted=False, counter=credential.counter)
            credential.counter = new_counter
            credential.last_used_at = datetime.now(UTC)
            return CounterAdvance(accepted=True, counter=new_counter)

    async def mark_credential_used(self, credential_id: str) -> None:
        async with self._lock:
            credential = self.credentials.get(credential_id)
            if credential is not None:
                credential.last_used_at = datetime.now(UTC)

    async def commit(self) -> None:
        # Writes are applied immediately
        return None
