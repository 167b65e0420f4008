"""
Pytest fixtures for passkey-auth API testing infrastructure.

This module provides:
1. Settings and backend fixtures (in-memory record and session stores)
2. A scripted credential verifier standing in for py_webauthn
3. An HTTP client wired to the app through ASGITransport
"""

import os
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from webauthn.helpers import bytes_to_base64url

# Set environment variables BEFORE any imports that might load settings
# This must happen at module level, not in fixtures, to run before test collection
os.environ.setdefault("PASSKEY_AUTH_ENVIRONMENT", "testing")
os.environ.setdefault("PASSKEY_AUTH_RECORD_STORE_BACKEND", "memory")
os.environ.setdefault("PASSKEY_AUTH_SESSION_STORE_BACKEND", "memory")
os.environ.setdefault("PASSKEY_AUTH_WEBAUTHN_RP_ID", "localhost")
os.environ.setdefault("PASSKEY_AUTH_WEBAUTHN_ORIGIN", "http://localhost:3000")

from passkey_auth.config import Settings, clear_settings_cache  # noqa: E402
from passkey_auth.core.session import MemorySessionStore, SessionContext  # noqa: E402
from passkey_auth.models.contracts.passkeys import (  # noqa: E402
    AuthenticationFinishRequest,
    RegistrationFinishRequest,
)
from passkey_auth.models.enums import DeviceType  # noqa: E402
from passkey_auth.repositories.memory import MemoryRecordStore  # noqa: E402
from passkey_auth.services.verification import (  # noqa: E402
    AuthenticationVerdict,
    CredentialVerifier,
    Expectation,
    KnownCredential,
    RegistrationVerdict,
)

SESSION_ID = "s" * 43


# ==================== SETTINGS FIXTURES ====================


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Make sure cached settings and engine state reflect the test environment."""
    from passkey_auth.core.database import reset_db_state

    clear_settings_cache()
    reset_db_state()
    yield
    clear_settings_cache()
    reset_db_state()


@pytest.fixture
def settings() -> Settings:
    """Settings for service-level tests, independent of the environment."""
    return Settings(
        environment="testing",
        record_store_backend="memory",
        session_store_backend="memory",
        webauthn_rp_id="localhost",
        webauthn_origin="http://localhost:3000",
        challenge_max_age_seconds=300,
        allow_counterless_authenticators=False,
        password_min_length=8,
    )


# ==================== FAKE VERIFIER ====================


@dataclass
class ScriptedVerifier(CredentialVerifier):
    """
    CredentialVerifier whose verdicts are set by the test.

    A response verifies when its clientDataJSON equals the base64url
    challenge the service expected, which is how a browser response is
    bound to the challenge it was produced for.
    """

    registration_counter: int = 0
    device_type: DeviceType = DeviceType.MULTI_DEVICE
    backed_up: bool = True
    next_counter: int = 1
    reject_reason: str | None = None
    fault: Exception | None = None
    registrations: list[Expectation] = field(default_factory=list)
    authentications: list[tuple[Expectation, KnownCredential]] = field(default_factory=list)

    def verify_registration(
        self,
        response: RegistrationFinishRequest,
        expected: Expectation,
    ) -> RegistrationVerdict:
        if self.fault is not None:
            raise self.fault
        self.registrations.append(expected)
        if self.reject_reason:
            return RegistrationVerdict.rejected(self.reject_reason)
        if response.client_data_json != bytes_to_base64url(expected.challenge):
            return RegistrationVerdict.rejected("Challenge mismatch")
        return RegistrationVerdict(
            verified=True,
            credential_id=response.credential_id,
            public_key=b"public-key-" + response.credential_id.encode(),
            counter=self.registration_counter,
            device_type=self.device_type,
            backed_up=self.backed_up,
        )

    def verify_authentication(
        self,
        response: AuthenticationFinishRequest,
        expected: Expectation,
        credential: KnownCredential,
    ) -> AuthenticationVerdict:
        if self.fault is not None:
            raise self.fault
        self.authentications.append((expected, credential))
        if self.reject_reason:
            return AuthenticationVerdict.rejected(self.reject_reason)
        if response.client_data_json != bytes_to_base64url(expected.challenge):
            return AuthenticationVerdict.rejected("Challenge mismatch")
        return AuthenticationVerdict(verified=True, new_counter=self.next_counter)


def build_registration_response(
    challenge: str, credential_id: str = "Y3JlZGVudGlhbC0x", transports: list[str] | None = None
) -> dict:
    """Browser-shaped attestation payload bound to a challenge."""
    return {
        "credentialId": credential_id,
        "rawId": credential_id,
        "clientDataJSON": challenge,
        "attestationObject": "YXR0ZXN0YXRpb24",
        "transports": transports if transports is not None else ["internal", "hybrid"],
    }


def build_authentication_response(
    challenge: str, credential_id: str = "Y3JlZGVudGlhbC0x", user_handle: str | None = None
) -> dict:
    """Browser-shaped assertion payload bound to a challenge."""
    return {
        "credentialId": credential_id,
        "rawId": credential_id,
        "clientDataJSON": challenge,
        "authenticatorData": "YXV0aGRhdGE",
        "signature": "c2lnbmF0dXJl",
        "userHandle": user_handle,
    }


# ==================== STORE FIXTURES ====================


@pytest.fixture
def record_store() -> MemoryRecordStore:
    """Fresh in-memory record store."""
    return MemoryRecordStore()


@pytest.fixture
def session_store() -> MemorySessionStore:
    """Fresh in-memory session store."""
    return MemorySessionStore()


@pytest.fixture
def verifier() -> ScriptedVerifier:
    """Verifier that accepts responses bound to the expected challenge."""
    return ScriptedVerifier()


@pytest_asyncio.fixture
async def session(session_store: MemorySessionStore) -> SessionContext:
    """Anonymous session context."""
    return await SessionContext.load(session_store, SESSION_ID)


# ==================== HTTP FIXTURES ====================


@pytest.fixture
def app(
    record_store: MemoryRecordStore,
    session_store: MemorySessionStore,
    verifier: ScriptedVerifier,
):
    """
    Fresh application instance.

    Stores and verifier are swapped in through dependency overrides, so every
    test starts with no users, credentials or sessions.
    """
    from passkey_auth.core.dependencies import get_record_store, get_session_store, get_verifier
    from passkey_auth.main import create_app

    app = create_app()
    app.dependency_overrides[get_record_store] = lambda: record_store
    app.dependency_overrides[get_session_store] = lambda: session_store
    app.dependency_overrides[get_verifier] = lambda: verifier

    return app


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with its own cookie jar."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


# ==================== MOCK FIXTURES ====================


@pytest.fixture
def mock_redis():
    """Mock Redis connection for unit tests."""
    mock = AsyncMock()
    mock.get = AsyncMock(return_value=None)
    mock.setex = AsyncMock(return_value=True)
    mock.getdel = AsyncMock(return_value=None)
    mock.delete = AsyncMock(return_value=1)
    return mock


# ==================== PAYLOAD FIXTURES ====================


@pytest.fixture
def registration_response():
    """Builder for attestation payloads."""
    return build_registration_response


@pytest.fixture
def authentication_response():
    """Builder for assertion payloads."""
    return build_authentication_response


# ==================== MARKERS ====================


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, mocked dependencies)")
    config.addinivalue_line(
        "markers", "integration: Integration tests (full HTTP stack, in-memory stores)"
    )
