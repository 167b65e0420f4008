"""
Ceremony Errors

Every failure a ceremony can produce is a CeremonyError subclass carrying a
stable machine-readable code and the HTTP status it maps to. Routers never
catch these; the application-level handler in main.py renders them.
"""

from fastapi import status


class CeremonyError(Exception):
    """Base class for structured ceremony failures."""

    code: str = "ceremony_error"
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Ceremony failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthenticatedError(CeremonyError):
    code = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class WeakPasswordError(CeremonyError):
    code = "weak_password"
    status_code = 422
    default_message = "Password is too short"


class DuplicateEmailError(CeremonyError):
    code = "duplicate_email"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Email already registered"


class InvalidCredentialsError(CeremonyError):
    code = "invalid_credentials"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Incorrect email or password"


class CredentialNotFoundError(CeremonyError):
    code = "credential_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Unknown credential"


class UserNotFoundError(CeremonyError):
    code = "user_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "User not found"


class VerificationFailedError(CeremonyError):
    code = "verification_failed"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Verification failed"


class ReplayDetectedError(CeremonyError):
    """Signature verified but the authenticator counter did not advance."""

    code = "replay_detected"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Authenticator counter did not advance"


class InternalError(CeremonyError):
    code = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "An unexpected error occurred"
