"""
Ceremony base class.

Shared plumbing for the passkey ceremonies: issuing a challenge into the
session, consuming it exactly once in the finish step, and turning
unexpected faults into InternalError.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from webauthn.helpers import base64url_to_bytes, bytes_to_base64url
from webauthn.helpers.structs import UserVerificationRequirement

from passkey_auth.config import Settings, get_settings
from passkey_auth.core.errors import CeremonyError, InternalError, VerificationFailedError
from passkey_auth.core.security import generate_challenge
from passkey_auth.core.session import PendingChallenge, SessionContext
from passkey_auth.models.enums import CeremonyKind
from passkey_auth.repositories.store import RecordStore
from passkey_auth.services.verification import CredentialVerifier, Expectation

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CeremonyService:
    """Base for the registration and authentication ceremonies."""

    kind: CeremonyKind

    def __init__(
        self,
        store: RecordStore,
        verifier: CredentialVerifier,
        settings: Settings | None = None,
    ):
        self.store = store
        self.verifier = verifier
        self.settings = settings or get_settings()

    @property
    def user_verification(self) -> UserVerificationRequirement:
        return UserVerificationRequirement(self.settings.webauthn_user_verification)

    async def _issue_challenge(self, session: SessionContext) -> bytes:
        """Generate a fresh challenge and make it the session's only pending one."""
        challenge = generate_challenge(self.settings.challenge_bytes)
        await session.issue_challenge(bytes_to_base64url(challenge), self.kind)
        return challenge

    def _expectation(self, pending: PendingChallenge | None) -> Expectation:
        """
        Validate a consumed challenge and build the expected values for it.

        Raises:
            VerificationFailedError: No challenge pending, issued for the
                other ceremony, or older than the validity window
        """
        if pending is None:
            raise VerificationFailedError("No ceremony in progress")
        if pending.ceremony != self.kind:
            raise VerificationFailedError(f"Pending challenge belongs to {pending.ceremony.value}")
        if pending.is_expired(self.settings.challenge_max_age_seconds):
            raise VerificationFailedError("Challenge expired")

        return Expectation(
            challenge=base64url_to_bytes(pending.challenge),
            origins=self.settings.webauthn_origins,
            rp_id=self.settings.webauthn_rp_id,
            require_user_verification=self.user_verification == UserVerificationRequirement.REQUIRED,
        )

    async def _finish(
        self,
        session: SessionContext,
        step: Callable[[PendingChallenge | None], Awaitable[T]],
    ) -> T:
        """
        Run a finish step.

        The pending challenge is taken out of the session before anything
        else, so it is gone on every exit path: success, rejection, or a
        fault in the store or verifier.
        """
        try:
            pending = await session.consume_challenge()
            return await step(pending)
        except CeremonyError:
            raise
        except Exception as e:
            logger.error(f"{self.kind.value} finish failed unexpectedly: {e}", exc_info=True)
            raise InternalError() from e
