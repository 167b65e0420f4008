"""
Unit tests for AuthenticationService.

Include the counter monotonicity rules: a reported counter must be strictly
greater than the stored one, otherwise the sign-in is a replay.
"""

import pytest
import pytest_asyncio
from webauthn.helpers import bytes_to_base64url

from passkey_auth.core.errors import (
    CredentialNotFoundError,
    InternalError,
    ReplayDetectedError,
    UserNotFoundError,
    VerificationFailedError,
)
from passkey_auth.models.contracts.passkeys import AuthenticationFinishRequest
from passkey_auth.models.enums import CeremonyKind, DeviceType
from passkey_auth.models.orm.credential import Credential
from passkey_auth.services.authentication_service import AuthenticationService

CREDENTIAL_ID = "Y3JlZGVudGlhbC0x"


@pytest.fixture
def service(record_store, verifier, settings) -> AuthenticationService:
    return AuthenticationService(record_store, verifier, settings)


@pytest_asyncio.fixture
async def enrolled(record_store):
    """User a@x.com with one passkey at counter 0."""
    user = await record_store.create_user("a@x.com", "a")
    await record_store.create_credential(
        Credential(
            id=CREDENTIAL_ID,
            user_id=user.id,
            public_key=b"pk",
            counter=0,
            device_type=DeviceType.SINGLE_DEVICE,
            backed_up=False,
            transports=["internal"],
        )
    )
    return user


def finish_request(payload: dict) -> AuthenticationFinishRequest:
    return AuthenticationFinishRequest.model_validate(payload)


@pytest.mark.unit
@pytest.mark.asyncio
class TestAuthenticationBegin:
    """Tests for authentication begin."""

    async def test_anonymous_session_gets_options(self, service, session, settings):
        options = await service.begin(session)

        assert len(options["challenge"]) > 0
        assert options["rpId"] == settings.webauthn_rp_id
        assert options.get("allowCredentials", []) == []
        assert options["userVerification"] == "preferred"

        pending = await session.pending_challenge()
        assert pending.challenge == options["challenge"]
        assert pending.ceremony == CeremonyKind.AUTHENTICATION

    async def test_each_begin_issues_fresh_challenge(self, service, session):
        first = await service.begin(session)
        second = await service.begin(session)

        assert first["challenge"] != second["challenge"]
        assert (await session.pending_challenge()).challenge == second["challenge"]


@pytest.mark.unit
@pytest.mark.asyncio
class TestAuthenticationFinish:
    """Tests for authentication finish."""

    async def test_signs_in_and_advances_counter(
        self, service, session, enrolled, record_store, verifier, authentication_response
    ):
        options = await service.begin(session)
        verifier.next_counter = 1

        user = await service.finish(session, finish_request(authentication_response(options["challenge"])))

        assert user.id == enrolled.id
        assert session.user_id == enrolled.id
        credential = await record_store.get_credential(CREDENTIAL_ID)
        assert credential.counter == 1
        assert credential.last_used_at is not None
        assert await session.pending_challenge() is None

    async def test_known_credential_passed_to_verifier(
        self, service, session, enrolled, verifier, authentication_response
    ):
        options = await service.begin(session)

        await service.finish(session, finish_request(authentication_response(options["challenge"])))

        _, known = verifier.authentications[0]
        assert known.id == CREDENTIAL_ID
        assert known.public_key == b"pk"
        assert known.counter == 0

    @pytest.mark.parametrize("reported", [3, 5])
    async def test_counter_not_advancing_is_replay(
        self, service, session, enrolled, record_store, verifier, authentication_response, reported
    ):
        (await record_store.get_credential(CREDENTIAL_ID)).counter = 5
        options = await service.begin(session)
        verifier.next_counter = reported

        with pytest.raises(ReplayDetectedError):
            await service.finish(session, finish_request(authentication_response(options["challenge"])))

        assert (await record_store.get_credential(CREDENTIAL_ID)).counter == 5
        assert session.user_id is None
        assert await session.pending_challenge() is None

    async def test_replayed_counter_after_success(
        self, service, session, enrolled, verifier, authentication_response
    ):
        verifier.next_counter = 1
        options = await service.begin(session)
        await service.finish(session, finish_request(authentication_response(options["challenge"])))
        await session.sign_out()

        options = await service.begin(session)
        with pytest.raises(ReplayDetectedError):
            await service.finish(session, finish_request(authentication_response(options["challenge"])))

    async def test_zero_counter_rejected_by_default(
        self, service, session, enrolled, verifier, authentication_response
    ):
        verifier.next_counter = 0
        options = await service.begin(session)

        with pytest.raises(ReplayDetectedError):
            await service.finish(session, finish_request(authentication_response(options["challenge"])))

    async def test_counterless_authenticator_allowed_when_enabled(
        self, record_store, verifier, settings, session, enrolled, authentication_response
    ):
        settings.allow_counterless_authenticators = True
        service = AuthenticationService(record_store, verifier, settings)
        verifier.next_counter = 0

        for _ in range(2):
            options = await service.begin(session)
            await service.finish(session, finish_request(authentication_response(options["challenge"])))

        credential = await record_store.get_credential(CREDENTIAL_ID)
        assert credential.counter == 0
        assert credential.last_used_at is not None

    async def test_unknown_credential_mutates_nothing(
        self, service, session, enrolled, record_store, authentication_response
    ):
        options = await service.begin(session)
        before = {cid: (c.counter, c.last_used_at) for cid, c in record_store.credentials.items()}

        with pytest.raises(CredentialNotFoundError):
            await service.finish(
                session,
                finish_request(authentication_response(options["challenge"], credential_id="dW5rbm93bg")),
            )

        after = {cid: (c.counter, c.last_used_at) for cid, c in record_store.credentials.items()}
        assert after == before
        assert len(record_store.users) == 1
        assert session.user_id is None
        assert await session.pending_challenge() is None

    async def test_orphaned_credential(
        self, service, session, enrolled, record_store, authentication_response
    ):
        del record_store.users[enrolled.id]
        options = await service.begin(session)

        with pytest.raises(UserNotFoundError):
            await service.finish(session, finish_request(authentication_response(options["challenge"])))

    async def test_user_handle_must_match_owner(
        self, service, session, enrolled, authentication_response
    ):
        options = await service.begin(session)
        payload = authentication_response(
            options["challenge"], user_handle=bytes_to_base64url(b"someone-else-handle")
        )

        with pytest.raises(VerificationFailedError, match="User handle"):
            await service.finish(session, finish_request(payload))

        assert session.user_id is None

    async def test_matching_user_handle_accepted(
        self, service, session, enrolled, authentication_response
    ):
        options = await service.begin(session)
        payload = authentication_response(
            options["challenge"], user_handle=bytes_to_base64url(enrolled.user_handle)
        )

        user = await service.finish(session, finish_request(payload))

        assert user.id == enrolled.id

    async def test_second_begin_invalidates_first_challenge(
        self, service, session, enrolled, record_store, authentication_response
    ):
        first = await service.begin(session)
        await service.begin(session)

        with pytest.raises(VerificationFailedError):
            await service.finish(session, finish_request(authentication_response(first["challenge"])))

        assert (await record_store.get_credential(CREDENTIAL_ID)).counter == 0
        assert await session.pending_challenge() is None

    async def test_without_begin(self, service, session, enrolled, authentication_response):
        with pytest.raises(VerificationFailedError, match="No ceremony in progress"):
            await service.finish(session, finish_request(authentication_response("abc")))

    async def test_rejected_signature(
        self, service, session, enrolled, verifier, authentication_response
    ):
        options = await service.begin(session)
        verifier.reject_reason = "Invalid signature"

        with pytest.raises(VerificationFailedError):
            await service.finish(session, finish_request(authentication_response(options["challenge"])))

        assert session.user_id is None
        assert await session.pending_challenge() is None

    async def test_store_fault_is_internal_and_clears_challenge(
        self, service, session, enrolled, record_store, authentication_response, monkeypatch
    ):
        async def broken(*args, **kwargs):
            raise ConnectionError("store unavailable")

        monkeypatch.setattr(record_store, "advance_counter", broken)
        options = await service.begin(session)

        with pytest.raises(InternalError):
            await service.finish(session, finish_request(authentication_response(options["challenge"])))

        assert session.user_id is None
        assert await session.pending_challenge() is None

    async def test_commit_precedes_sign_in(
        self, service, session, enrolled, record_store, authentication_response, monkeypatch
    ):
        seen = []

        async def commit():
            seen.append((session.user_id, (await record_store.get_credential(CREDENTIAL_ID)).counter))

        monkeypatch.setattr(record_store, "commit", commit)
        options = await service.begin(session)

        await service.finish(session, finish_request(authentication_response(options["challenge"])))

        assert seen == [(None, 1)]
        assert session.user_id == enrolled.id

    async def test_failed_commit_leaves_session_signed_out(
        self, service, session, enrolled, record_store, authentication_response, monkeypatch
    ):
        async def commit():
            raise ConnectionError("commit failed")

        monkeypatch.setattr(record_store, "commit", commit)
        options = await service.begin(session)

        with pytest.raises(InternalError):
            await service.finish(session, finish_request(authentication_response(options["challenge"])))

        assert session.user_id is None
        assert await session.pending_challenge() is None
