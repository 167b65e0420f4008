"""
Session Context

Per-session mutable state keyed by an opaque session id: the authenticated
user (if any) and at most one pending ceremony challenge.

The SessionStore contract has two implementations: RedisSessionStore for
deployments and MemorySessionStore for single-process development and
tests. Taking a pending challenge is atomic in both, so a challenge can be
handed to at most one finish call.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID

import redis.asyncio as redis

from passkey_auth.models.enums import CeremonyKind

logger = logging.getLogger(__name__)

SESSION_USER_PREFIX = "session_user:"
SESSION_CHALLENGE_PREFIX = "session_challenge:"


@dataclass(frozen=True)
class PendingChallenge:
    """A challenge issued by a begin call and not yet consumed."""

    challenge: str  # base64url
    ceremony: CeremonyKind
    issued_at: datetime

    def is_expired(self, max_age_seconds: int, now: datetime | None = None) -> bool:
        now = now or datetime.now(UTC)
        return now - self.issued_at > timedelta(seconds=max_age_seconds)

    def to_json(self) -> str:
        return json.dumps(
            {
                "challenge": self.challenge,
                "ceremony": self.ceremony.value,
                "issued_at": self.issued_at.isoformat(),
            }
        )

    @classmethod
    def from_json(cls, raw: str) -> "PendingChallenge":
        data = json.loads(raw)
        return cls(
            challenge=data["challenge"],
            ceremony=CeremonyKind(data["ceremony"]),
            issued_at=datetime.fromisoformat(data["issued_at"]),
        )


class SessionStore(ABC):
    """Storage contract for session contexts."""

    @abstractmethod
    async def get_user_id(self, session_id: str) -> UUID | None:
        """Return the authenticated user of a session, if any."""

    @abstractmethod
    async def set_user_id(self, session_id: str, user_id: UUID | None) -> None:
        """Set or clear the authenticated user of a session."""

    @abstractmethod
    async def put_challenge(self, session_id: str, pending: PendingChallenge) -> None:
        """Store a pending challenge, replacing any previous one."""

    @abstractmethod
    async def peek_challenge(self, session_id: str) -> PendingChallenge | None:
        """Read the pending challenge without consuming it. Introspection only."""

    @abstractmethod
    async def take_challenge(self, session_id: str) -> PendingChallenge | None:
        """Atomically read and remove the pending challenge."""


class RedisSessionStore(SessionStore):
    """
    Session store on Redis.

    Identity and challenge live under separate keys so that the challenge can
    carry its own TTL (the server-side validity window) and be consumed with
    GETDEL.
    """

    def __init__(self, client: redis.Redis, session_ttl_seconds: int, challenge_ttl_seconds: int):
        self.client = client
        self.session_ttl_seconds = session_ttl_seconds
        self.challenge_ttl_seconds = challenge_ttl_seconds

    async def get_user_id(self, session_id: str) -> UUID | None:
        raw = await self.client.get(f"{SESSION_USER_PREFIX}{session_id}")
        if not raw:
            return None
        try:
            return UUID(raw)
        except ValueError:
            logger.warning(f"Discarding malformed user id in session {session_id[:8]}")
            return None

    async def set_user_id(self, session_id: str, user_id: UUID | None) -> None:
        key = f"{SESSION_USER_PREFIX}{session_id}"
        if user_id is None:
            await self.client.delete(key)
        else:
            await self.client.setex(key, self.session_ttl_seconds, str(user_id))

    async def put_challenge(self, session_id: str, pending: PendingChallenge) -> None:
        await self.client.setex(
            f"{SESSION_CHALLENGE_PREFIX}{session_id}",
            self.challenge_ttl_seconds,
            pending.to_json(),
        )

    async def peek_challenge(self, session_id: str) -> PendingChallenge | None:
        raw = await self.client.get(f"{SESSION_CHALLENGE_PREFIX}{session_id}")
        return PendingChallenge.from_json(raw) if raw else None

    async def take_challenge(self, session_id: str) -> PendingChallenge | None:
        raw = await self.client.getdel(f"{SESSION_CHALLENGE_PREFIX}{session_id}")
        return PendingChallenge.from_json(raw) if raw else None


class MemorySessionStore(SessionStore):
    """In-process session store. State is lost on restart and not shared between workers."""

    def __init__(self) -> None:
        self._users: dict[str, UUID] = {}
        self._challenges: dict[str, PendingChallenge] = {}
        self._lock = asyncio.Lock()

    async def get_user_id(self, session_id: str) -> UUID | None:
        return self._users.get(session_id)

    async def set_user_id(self, session_id: str, user_id: UUID | None) -> None:
        async with self._lock:
            if user_id is None:
                self._users.pop(session_id, None)
            else:
                self._users[session_id] = user_id

    async def put_challenge(self, session_id: str, pending: PendingChallenge) -> None:
        async with self._lock:
            self._challenges[session_id] = pending

    async def peek_challenge(self, session_id: str) -> PendingChallenge | None:
        return self._challenges.get(session_id)

    async def take_challenge(self, session_id: str) -> PendingChallenge | None:
        async with self._lock:
            return self._challenges.pop(session_id, None)


@dataclass
class SessionContext:
    """
    The session a request is operating in.

    user_id is loaded once per request; mutations write through to the store
    and update the local copy.
    """

    session_id: str
    store: SessionStore = field(repr=False)
    user_id: UUID | None = None

    @classmethod
    async def load(cls, store: SessionStore, session_id: str) -> "SessionContext":
        return cls(session_id=session_id, store=store, user_id=await store.get_user_id(session_id))

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    async def sign_in(self, user_id: UUID) -> None:
        await self.store.set_user_id(self.session_id, user_id)
        self.user_id = user_id

    async def sign_out(self) -> None:
        await self.store.set_user_id(self.session_id, None)
        await self.store.take_challenge(self.session_id)
        self.user_id = None

    async def issue_challenge(self, challenge: str, ceremony: CeremonyKind) -> PendingChallenge:
        pending = PendingChallenge(
            challenge=challenge,
            ceremony=ceremony,
            issued_at=datetime.now(UTC),
        )
        await self.store.put_challenge(self.session_id, pending)
        return pending

    async def pending_challenge(self) -> PendingChallenge | None:
        """Read the pending challenge without consuming it. Introspection only."""
        return await self.store.peek_challenge(self.session_id)

    async def consume_challenge(self) -> PendingChallenge | None:
        return await self.store.take_challenge(self.session_id)
