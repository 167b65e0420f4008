"""
Authentication Service - passkey sign-in.

begin() issues a challenge with an empty allow list so any discoverable
credential may answer; finish() resolves the credential and its owner from
the response, verifies the assertion and advances the signature counter.
"""

import json
import logging

from webauthn import generate_authentication_options, options_to_json
from webauthn.helpers import bytes_to_base64url

from passkey_auth.core.errors import (
    CredentialNotFoundError,
    ReplayDetectedError,
    UserNotFoundError,
    VerificationFailedError,
)
from passkey_auth.core.session import PendingChallenge, SessionContext
from passkey_auth.models.contracts.passkeys import AuthenticationFinishRequest
from passkey_auth.models.enums import CeremonyKind
from passkey_auth.models.orm.user import User
from passkey_auth.services.ceremony import CeremonyService
from passkey_auth.services.verification import KnownCredential

logger = logging.getLogger(__name__)


class AuthenticationService(CeremonyService):
    """Passkey authentication ceremony."""

    kind = CeremonyKind.AUTHENTICATION

    async def begin(self, session: SessionContext) -> dict:
        """
        Generate WebAuthn authentication options.

        No identity is required; the session only has to exist to hold the
        challenge.

        Returns:
            Options JSON for navigator.credentials.get()
        """
        challenge = await self._issue_challenge(session)
        options = generate_authentication_options(
            rp_id=self.settings.webauthn_rp_id,
            challenge=challenge,
            timeout=self.settings.challenge_timeout_ms,
            allow_credentials=[],
            user_verification=self.user_verification,
        )
        return json.loads(options_to_json(options))

    async def finish(self, session: SessionContext, response: AuthenticationFinishRequest) -> User:
        """
        Verify an assertion response and sign the session in.

        Args:
            session: Current session with a pending authentication challenge
            response: Assertion response from the browser

        Returns:
            The authenticated user

        Raises:
            VerificationFailedError: No matching challenge pending, user
                handle mismatch, or the assertion does not verify
            CredentialNotFoundError: Unknown credential id
            UserNotFoundError: Credential owner missing
            ReplayDetectedError: Counter did not advance
            InternalError: On store or verifier faults
        """

        async def step(pending: PendingChallenge | None) -> User:
            expected = self._expectation(pending)

            credential = await self.store.get_credential(response.credential_id)
            if credential is None:
                logger.warning(f"Sign-in attempted with unknown credential {response.credential_id[:16]}")
                raise CredentialNotFoundError()

            user = await self.store.get_user(credential.user_id)
            if user is None:
                logger.error(f"Credential {credential.id[:16]} references missing user {credential.user_id}")
                raise UserNotFoundError()

            if response.user_handle and response.user_handle != bytes_to_base64url(user.user_handle):
                raise VerificationFailedError("User handle does not match credential owner")

            verdict = self.verifier.verify_authentication(
                response,
                expected,
                KnownCredential(
                    id=credential.id,
                    public_key=credential.public_key,
                    counter=credential.counter,
                    transports=credential.transports,
                ),
            )
            if not verdict.verified:
                logger.warning(f"Sign-in rejected for user {user.id}: {verdict.reason}")
                raise VerificationFailedError(f"Authentication verification failed: {verdict.reason}")

            if (
                self.settings.allow_counterless_authenticators
                and credential.counter == 0
                and verdict.new_counter == 0
            ):
                await self.store.mark_credential_used(credential.id)
            else:
                advance = await self.store.advance_counter(credential.id, verdict.new_counter)
                if not advance.accepted:
                    logger.warning(
                        f"Replay detected for credential {credential.id[:16]} of user {user.id}: "
                        f"reported {verdict.new_counter}, stored {advance.counter}"
                    )
                    raise ReplayDetectedError()

            await self.store.commit()
            await session.sign_in(user.id)
            logger.info(f"Passkey authentication successful for user {user.id}")
            return user

        return await self._finish(session, step)
