"""
Record Store contract.

Durable keyed storage for users and their passkey credentials. Ceremony
services depend only on this interface; SqlRecordStore and MemoryRecordStore
implement it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from uuid import UUID

from passkey_auth.models.orm.credential import Credential
from passkey_auth.models.orm.user import User


class DuplicateRecordError(Exception):
    """A unique key (user email or credential id) is already taken."""


@dataclass(frozen=True)
class CounterAdvance:
    """
    Outcome of a conditional counter update.

    accepted is True only when the stored counter was strictly lower than the
    proposed one and has been replaced by it. counter is the value stored
    after the attempt.
    """

    accepted: bool
    counter: int


class RecordStore(ABC):
    """Storage contract for user and credential records."""

    # Users

    @abstractmethod
    async def create_user(
        self,
        email: str,
        name: str,
        display_name: str | None = None,
        hashed_password: str | None = None,
    ) -> User:
        """Create a user. Raises DuplicateRecordError if the email is taken."""

    @abstractmethod
    async def get_user(self, user_id: UUID) -> User | None:
        """Find a user by id."""

    @abstractmethod
    async def get_user_by_email(self, email: str) -> User | None:
        """Find a user by exact (case-sensitive) email."""

    # Credentials

    @abstractmethod
    async def create_credential(self, credential: Credential) -> Credential:
        """Persist a credential. Raises DuplicateRecordError if the id is taken."""

    @abstractmethod
    async def get_credential(self, credential_id: str) -> Credential | None:
        """Find a credential by its authenticator-reported id."""

    @abstractmethod
    async def list_credentials(self, user_id: UUID) -> list[Credential]:
        """All credentials owned by a user, oldest first."""

    @abstractmethod
    async def advance_counter(self, credential_id: str, new_counter: int) -> CounterAdvance:
        """
        Set the counter to new_counter only if it is strictly greater than
        the stored one, as a single atomic step. Also stamps last_used_at
        on success.
        """

    @abstractmethod
    async def mark_credential_used(self, credential_id: str) -> None:
        """Stamp last_used_at without touching the counter."""

    # Transactions

    @abstractmethod
    async def commit(self) -> None:
        """
        Make all writes so far durable.

        Called before a ceremony changes session state or reports success.
        """
