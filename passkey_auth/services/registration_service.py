"""
Registration Service - passkey enrollment for a signed-in user.

begin() hands the browser creation options and parks the challenge in the
session; finish() verifies the attestation against that challenge and stores
the new credential.
"""

import json
import logging

from webauthn import generate_registration_options, options_to_json
from webauthn.helpers import base64url_to_bytes
from webauthn.helpers.structs import (
    AuthenticatorAttachment,
    AuthenticatorSelectionCriteria,
    PublicKeyCredentialDescriptor,
    ResidentKeyRequirement,
)

from passkey_auth.core.errors import UnauthenticatedError, VerificationFailedError
from passkey_auth.core.session import PendingChallenge, SessionContext
from passkey_auth.models.contracts.passkeys import RegistrationFinishRequest
from passkey_auth.models.enums import CeremonyKind, Transport
from passkey_auth.models.orm.credential import Credential
from passkey_auth.models.orm.user import User
from passkey_auth.repositories.store import DuplicateRecordError
from passkey_auth.services.ceremony import CeremonyService
from passkey_auth.services.verification import to_authenticator_transports

logger = logging.getLogger(__name__)


class RegistrationService(CeremonyService):
    """Passkey registration ceremony."""

    kind = CeremonyKind.REGISTRATION

    async def begin(self, session: SessionContext) -> dict:
        """
        Generate WebAuthn registration options for the session's user.

        Args:
            session: Current session; must be signed in

        Returns:
            Options JSON for navigator.credentials.create()

        Raises:
            UnauthenticatedError: If the session has no (existing) user
        """
        user = await self._session_user(session)

        existing = await self.store.list_credentials(user.id)
        exclude_credentials = [
            PublicKeyCredentialDescriptor(
                id=base64url_to_bytes(credential.id),
                transports=to_authenticator_transports(credential.transports),
            )
            for credential in existing
        ]

        challenge = await self._issue_challenge(session)
        options = generate_registration_options(
            rp_id=self.settings.webauthn_rp_id,
            rp_name=self.settings.webauthn_rp_name,
            user_id=user.user_handle,
            user_name=user.email,
            user_display_name=user.display_name or user.name,
            challenge=challenge,
            timeout=self.settings.challenge_timeout_ms,
            exclude_credentials=exclude_credentials,
            authenticator_selection=AuthenticatorSelectionCriteria(
                authenticator_attachment=AuthenticatorAttachment(
                    self.settings.webauthn_authenticator_attachment
                ),
                resident_key=ResidentKeyRequirement(self.settings.webauthn_resident_key),
                user_verification=self.user_verification,
            ),
        )

        logger.info(f"Registration challenge issued for user {user.id}")
        return json.loads(options_to_json(options))

    async def finish(self, session: SessionContext, response: RegistrationFinishRequest) -> str:
        """
        Verify an attestation response and store the credential.

        Args:
            session: Current session; must be signed in with a pending
                registration challenge
            response: Attestation response from the browser

        Returns:
            The new credential's id

        Raises:
            UnauthenticatedError: If the session has no user
            VerificationFailedError: If no matching challenge is pending or
                the response does not verify
            InternalError: On store or verifier faults
        """

        async def step(pending: PendingChallenge | None) -> str:
            user = await self._session_user(session)
            expected = self._expectation(pending)

            verdict = self.verifier.verify_registration(response, expected)
            if not verdict.verified or verdict.credential_id is None or verdict.public_key is None:
                logger.warning(f"Registration rejected for user {user.id}: {verdict.reason}")
                raise VerificationFailedError(f"Registration verification failed: {verdict.reason}")

            credential = Credential(
                id=verdict.credential_id,
                user_id=user.id,
                public_key=verdict.public_key,
                counter=verdict.counter,
                device_type=verdict.device_type,
                backed_up=verdict.backed_up,
                transports=Transport.normalize(response.transports),
            )
            try:
                await self.store.create_credential(credential)
            except DuplicateRecordError as e:
                raise VerificationFailedError("Credential already registered") from e
            await self.store.commit()

            logger.info(f"Passkey registered for user {user.id}: {credential.id[:16]}")
            return credential.id

        return await self._finish(session, step)

    async def list_credentials(self, session: SessionContext) -> list[Credential]:
        """
        List the session user's passkeys.

        Raises:
            UnauthenticatedError: If the session has no user
        """
        user = await self._session_user(session)
        return await self.store.list_credentials(user.id)

    async def _session_user(self, session: SessionContext) -> User:
        if not session.is_authenticated:
            raise UnauthenticatedError()
        user = await self.store.get_user(session.user_id)
        if user is None:
            raise UnauthenticatedError("Session user no longer exists")
        return user
