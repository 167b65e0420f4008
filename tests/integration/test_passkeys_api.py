"""
Integration tests for passkey ceremony endpoints.
"""

import pytest
import pytest_asyncio


@pytest_asyncio.fixture
async def signed_in(client):
    response = await client.post(
        "/signup", json={"email": "a@x.com", "password": "password1", "displayName": "A"}
    )
    assert response.status_code == 201
    return client


@pytest.mark.integration
@pytest.mark.asyncio
class TestPasskeyRoundTrip:
    """Registration followed by passwordless sign-in."""

    async def test_register_then_authenticate_then_replay(
        self,
        signed_in,
        record_store,
        verifier,
        registration_response,
        authentication_response,
    ):
        client = signed_in

        # Register
        options = (await client.get("/user/passkey/register")).json()
        assert len(options["challenge"]) > 0

        response = await client.post(
            "/user/passkey/register", json=registration_response(options["challenge"])
        )
        assert response.status_code == 200
        credential_id = response.json()["credentialId"]
        assert len(record_store.credentials) == 1
        assert record_store.credentials[credential_id].counter == 0

        # Sign out, then sign in with the passkey
        await client.post("/signout")
        options = (await client.get("/signin/passkey")).json()
        verifier.next_counter = 1
        assertion = authentication_response(options["challenge"], credential_id=credential_id)

        response = await client.post("/signin/passkey", json=assertion)
        assert response.status_code == 200
        assert response.json() == {"status": "success"}
        assert record_store.credentials[credential_id].counter == 1
        assert (await client.get("/user")).json()["email"] == "a@x.com"

        # Same counter again under a fresh challenge
        options = (await client.get("/signin/passkey")).json()
        replay = authentication_response(options["challenge"], credential_id=credential_id)

        response = await client.post("/signin/passkey", json=replay)
        assert response.status_code == 403
        assert response.json()["error"] == "replay_detected"
        assert record_store.credentials[credential_id].counter == 1

    async def test_list_passkeys(self, signed_in, registration_response):
        client = signed_in
        options = (await client.get("/user/passkey/register")).json()
        await client.post("/user/passkey/register", json=registration_response(options["challenge"]))

        response = await client.get("/user/passkeys")

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        passkey = body["credentials"][0]
        assert passkey["id"] == "Y3JlZGVudGlhbC0x"
        assert passkey["deviceType"] == "multiDevice"
        assert passkey["backedUp"] is True
        assert passkey["transports"] == ["internal", "hybrid"]
        assert "public_key" not in passkey


@pytest.mark.integration
@pytest.mark.asyncio
class TestPasskeyFailures:
    """Failure paths of the passkey endpoints."""

    async def test_registration_requires_sign_in(self, client):
        response = await client.get("/user/passkey/register")

        assert response.status_code == 401
        assert response.json()["error"] == "unauthenticated"

    async def test_list_requires_sign_in(self, client):
        response = await client.get("/user/passkeys")

        assert response.status_code == 401

    async def test_registration_replay_rejected(self, signed_in, record_store, registration_response):
        client = signed_in
        options = (await client.get("/user/passkey/register")).json()
        payload = registration_response(options["challenge"])

        first = await client.post("/user/passkey/register", json=payload)
        second = await client.post("/user/passkey/register", json=payload)

        assert first.status_code == 200
        assert second.status_code == 400
        assert second.json()["error"] == "verification_failed"
        assert len(record_store.credentials) == 1

    async def test_unknown_credential(self, client, record_store, authentication_response):
        options = (await client.get("/signin/passkey")).json()

        response = await client.post(
            "/signin/passkey",
            json=authentication_response(options["challenge"], credential_id="dW5rbm93bg"),
        )

        assert response.status_code == 404
        assert response.json()["error"] == "credential_not_found"
        assert record_store.users == {}
        assert record_store.credentials == {}
        assert (await client.get("/user")).status_code == 401

    async def test_finish_without_begin(self, client, authentication_response):
        response = await client.post("/signin/passkey", json=authentication_response("YWJj"))

        assert response.status_code == 400
        assert response.json()["error"] == "verification_failed"

    async def test_challenge_is_per_session(self, app, signed_in, record_store, registration_response):
        from httpx import ASGITransport, AsyncClient

        client = signed_in
        options = (await client.get("/user/passkey/register")).json()

        # Another browser, with its own cookie jar
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as other:
            await other.post("/signup", json={"email": "b@x.com", "password": "password1"})
            response = await other.post(
                "/user/passkey/register", json=registration_response(options["challenge"])
            )

        assert response.status_code == 400
        assert record_store.credentials == {}
