"""Pydantic contracts (API request/response schemas)."""

from passkey_auth.models.contracts.auth import (
    EmailResponse,
    SigninRequest,
    SignupRequest,
    UserResponse,
)
from passkey_auth.models.contracts.common import (
    ErrorResponse,
    HealthResponse,
    StatusResponse,
)
from passkey_auth.models.contracts.passkeys import (
    AuthenticationFinishRequest,
    CredentialListResponse,
    CredentialPublic,
    RegistrationFinishRequest,
    RegistrationFinishResponse,
)

__all__ = [
    # Common
    "ErrorResponse",
    "HealthResponse",
    "StatusResponse",
    # Password
    "SignupRequest",
    "SigninRequest",
    "EmailResponse",
    "UserResponse",
    # Passkeys
    "RegistrationFinishRequest",
    "RegistrationFinishResponse",
    "AuthenticationFinishRequest",
    "CredentialPublic",
    "CredentialListResponse",
]
