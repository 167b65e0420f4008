"""
Passkey/WebAuthn contract models.

API request and response models for passkey ceremonies. Binary WebAuthn
fields travel as base64url strings.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from passkey_auth.models.enums import DeviceType

# =============================================================================
# Registration
# =============================================================================


class RegistrationFinishRequest(BaseModel):
    """Attestation response from navigator.credentials.create()."""

    model_config = ConfigDict(populate_by_name=True)

    credential_id: str = Field(alias="credentialId", min_length=1)
    raw_id: str = Field(alias="rawId", min_length=1)
    client_data_json: str = Field(alias="clientDataJSON", min_length=1)
    attestation_object: str = Field(alias="attestationObject", min_length=1)
    transports: list[str] | None = Field(default=None)


class RegistrationFinishResponse(BaseModel):
    """Response after successful passkey registration."""

    model_config = ConfigDict(populate_by_name=True)

    credential_id: str = Field(serialization_alias="credentialId")


# =============================================================================
# Authentication
# =============================================================================


class AuthenticationFinishRequest(BaseModel):
    """Assertion response from navigator.credentials.get()."""

    model_config = ConfigDict(populate_by_name=True)

    credential_id: str = Field(alias="credentialId", min_length=1)
    raw_id: str = Field(alias="rawId", min_length=1)
    client_data_json: str = Field(alias="clientDataJSON", min_length=1)
    authenticator_data: str = Field(alias="authenticatorData", min_length=1)
    signature: str = Field(min_length=1)
    user_handle: str | None = Field(default=None, alias="userHandle")


# =============================================================================
# Listing
# =============================================================================


class CredentialPublic(BaseModel):
    """Public representation of a user's passkey."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str = Field(description="Credential id (base64url)")
    device_type: DeviceType = Field(serialization_alias="deviceType")
    backed_up: bool = Field(serialization_alias="backedUp")
    transports: list[str] | None = None
    created_at: datetime = Field(serialization_alias="createdAt")
    last_used_at: datetime | None = Field(default=None, serialization_alias="lastUsedAt")


class CredentialListResponse(BaseModel):
    """Response with list of user's passkeys."""

    credentials: list[CredentialPublic]
    count: int
