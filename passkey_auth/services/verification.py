"""
Credential Verification Service

Stateless checks of WebAuthn attestation and assertion responses against the
expected challenge, origin and relying party. The ceremony services only see
the CredentialVerifier contract and its verdicts; WebAuthnVerifier fulfils it
with the py_webauthn library.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from webauthn import verify_authentication_response, verify_registration_response
from webauthn.helpers import base64url_to_bytes, bytes_to_base64url
from webauthn.helpers.structs import (
    AuthenticationCredential,
    AuthenticatorAssertionResponse,
    AuthenticatorAttestationResponse,
    AuthenticatorTransport,
    CredentialDeviceType,
    PublicKeyCredentialType,
    RegistrationCredential,
)

from passkey_auth.models.contracts.passkeys import (
    AuthenticationFinishRequest,
    RegistrationFinishRequest,
)
from passkey_auth.models.enums import DeviceType, Transport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Expectation:
    """Values the response must have been produced against."""

    challenge: bytes
    origins: list[str]
    rp_id: str
    require_user_verification: bool = False


@dataclass(frozen=True)
class KnownCredential:
    """Stored credential facts handed to assertion verification."""

    id: str
    public_key: bytes
    counter: int
    transports: list[str] | None = None


@dataclass(frozen=True)
class RegistrationVerdict:
    verified: bool
    credential_id: str | None = None
    public_key: bytes | None = None
    counter: int = 0
    device_type: DeviceType = DeviceType.SINGLE_DEVICE
    backed_up: bool = False
    reason: str | None = None

    @classmethod
    def rejected(cls, reason: str) -> "RegistrationVerdict":
        return cls(verified=False, reason=reason)


@dataclass(frozen=True)
class AuthenticationVerdict:
    verified: bool
    new_counter: int = 0
    reason: str | None = None

    @classmethod
    def rejected(cls, reason: str) -> "AuthenticationVerdict":
        return cls(verified=False, reason=reason)


class CredentialVerifier(ABC):
    """Contract for the cryptographic half of a ceremony."""

    @abstractmethod
    def verify_registration(
        self,
        response: RegistrationFinishRequest,
        expected: Expectation,
    ) -> RegistrationVerdict:
        """Check an attestation response and extract the new credential."""

    @abstractmethod
    def verify_authentication(
        self,
        response: AuthenticationFinishRequest,
        expected: Expectation,
        credential: KnownCredential,
    ) -> AuthenticationVerdict:
        """Check an assertion response against a stored credential."""


def to_authenticator_transports(values: list[str] | None) -> list[AuthenticatorTransport] | None:
    """Map stored transport hints to py_webauthn enums, dropping unknown ones."""
    normalized = Transport.normalize(values)
    if not normalized:
        return None
    return [AuthenticatorTransport(value) for value in normalized]


def _device_type(value: CredentialDeviceType) -> DeviceType:
    if value == CredentialDeviceType.MULTI_DEVICE:
        return DeviceType.MULTI_DEVICE
    return DeviceType.SINGLE_DEVICE


class WebAuthnVerifier(CredentialVerifier):
    """CredentialVerifier using py_webauthn."""

    def verify_registration(
        self,
        response: RegistrationFinishRequest,
        expected: Expectation,
    ) -> RegistrationVerdict:
        if response.raw_id != response.credential_id:
            return RegistrationVerdict.rejected("Credential id does not match raw id")

        try:
            credential = RegistrationCredential(
                id=response.credential_id,
                raw_id=base64url_to_bytes(response.raw_id),
                response=AuthenticatorAttestationResponse(
                    client_data_json=base64url_to_bytes(response.client_data_json),
                    attestation_object=base64url_to_bytes(response.attestation_object),
                    transports=to_authenticator_transports(response.transports),
                ),
                type=PublicKeyCredentialType.PUBLIC_KEY,
            )
            verification = verify_registration_response(
                credential=credential,
                expected_challenge=expected.challenge,
                expected_origin=expected.origins,
                expected_rp_id=expected.rp_id,
                require_user_verification=expected.require_user_verification,
            )
        except Exception as e:
            logger.warning(f"Registration response rejected: {e}")
            return RegistrationVerdict.rejected(str(e))

        return RegistrationVerdict(
            verified=True,
            credential_id=bytes_to_base64url(verification.credential_id),
            public_key=verification.credential_public_key,
            counter=verification.sign_count,
            device_type=_device_type(verification.credential_device_type),
            backed_up=verification.credential_backed_up,
        )

    def verify_authentication(
        self,
        response: AuthenticationFinishRequest,
        expected: Expectation,
        credential: KnownCredential,
    ) -> AuthenticationVerdict:
        if response.raw_id != response.credential_id or response.credential_id != credential.id:
            return AuthenticationVerdict.rejected("Credential id does not match raw id")

        try:
            assertion = AuthenticationCredential(
                id=response.credential_id,
                raw_id=base64url_to_bytes(response.raw_id),
                response=AuthenticatorAssertionResponse(
                    client_data_json=base64url_to_bytes(response.client_data_json),
                    authenticator_data=base64url_to_bytes(response.authenticator_data),
                    signature=base64url_to_bytes(response.signature),
                    user_handle=(
                        base64url_to_bytes(response.user_handle) if response.user_handle else None
                    ),
                ),
                type=PublicKeyCredentialType.PUBLIC_KEY,
            )
            # Counter monotonicity is enforced by the record store's conditional
            # update, so the library's own comparison is given a zero baseline.
            verification = verify_authentication_response(
                credential=assertion,
                expected_challenge=expected.challenge,
                expected_origin=expected.origins,
                expected_rp_id=expected.rp_id,
                credential_public_key=credential.public_key,
                credential_current_sign_count=0,
                require_user_verification=expected.require_user_verification,
            )
        except Exception as e:
            logger.warning(f"Authentication response rejected for credential {credential.id[:16]}: {e}")
            return AuthenticationVerdict.rejected(str(e))

        return AuthenticationVerdict(verified=True, new_counter=verification.new_sign_count)
