"""
Request Dependencies

FastAPI dependencies that hand each request its record store, session
context and credential verifier. Tests swap these through
app.dependency_overrides.
"""

import logging
from collections.abc import AsyncGenerator
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request, Response

from passkey_auth.config import get_settings
from passkey_auth.core.cache import get_redis
from passkey_auth.core.database import get_session_factory
from passkey_auth.core.security import generate_session_id
from passkey_auth.core.session import (
    MemorySessionStore,
    RedisSessionStore,
    SessionContext,
    SessionStore,
)
from passkey_auth.repositories.memory import MemoryRecordStore
from passkey_auth.repositories.sql import SqlRecordStore
from passkey_auth.repositories.store import RecordStore
from passkey_auth.services.verification import CredentialVerifier, WebAuthnVerifier

logger = logging.getLogger(__name__)


@lru_cache
def get_memory_record_store() -> MemoryRecordStore:
    """Process-wide memory record store (record_store_backend=memory)."""
    return MemoryRecordStore()


@lru_cache
def get_memory_session_store() -> MemorySessionStore:
    """Process-wide memory session store (session_store_backend=memory)."""
    return MemorySessionStore()


async def get_record_store() -> AsyncGenerator[RecordStore, None]:
    """
    Dependency for the record store.

    For the database backend, one transaction spans the request. Services
    commit explicitly before they sign a session in or report success;
    anything left is committed when the handler returns and rolled back when
    it raises.
    """
    settings = get_settings()
    if settings.record_store_backend == "memory":
        yield get_memory_record_store()
        return

    session_factory = get_session_factory()
    async with session_factory() as db:
        try:
            yield SqlRecordStore(db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise


async def get_session_store() -> SessionStore:
    """Dependency for the session store selected in settings."""
    settings = get_settings()
    if settings.session_store_backend == "memory":
        return get_memory_session_store()
    return RedisSessionStore(
        await get_redis(),
        session_ttl_seconds=settings.session_ttl_seconds,
        challenge_ttl_seconds=settings.challenge_max_age_seconds,
    )


@lru_cache
def get_verifier() -> CredentialVerifier:
    """Dependency for the credential verifier."""
    return WebAuthnVerifier()


async def get_session(
    request: Request,
    response: Response,
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> SessionContext:
    """
    Load the session context named by the session cookie.

    A request without a (well-formed) cookie gets a fresh session id, sent
    back as an HttpOnly cookie.
    """
    settings = get_settings()
    session_id = request.cookies.get(settings.session_cookie_name)

    if not session_id or len(session_id) != 43:
        session_id = generate_session_id()

    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_id,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.session_ttl_seconds,
        path="/",
    )

    return await SessionContext.load(store, session_id)


# Type aliases for dependency injection
Store = Annotated[RecordStore, Depends(get_record_store)]
Session = Annotated[SessionContext, Depends(get_session)]
Verifier = Annotated[CredentialVerifier, Depends(get_verifier)]
