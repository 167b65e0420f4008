"""
Passkey/WebAuthn Router

Provides endpoints for passkey ceremonies:
- Registration: signed-in users enrolling a passkey
- Authentication: passwordless sign-in with a discoverable credential
- Listing the signed-in user's passkeys

Each ceremony is a GET that issues options plus a challenge bound to the
session, followed by a POST that consumes that challenge.
"""

from typing import Any

from fastapi import APIRouter

from passkey_auth.core.dependencies import Session, Store, Verifier
from passkey_auth.models.contracts.common import StatusResponse
from passkey_auth.models.contracts.passkeys import (
    AuthenticationFinishRequest,
    CredentialListResponse,
    CredentialPublic,
    RegistrationFinishRequest,
    RegistrationFinishResponse,
)
from passkey_auth.services.authentication_service import AuthenticationService
from passkey_auth.services.registration_service import RegistrationService

router = APIRouter(tags=["passkeys"])


# =============================================================================
# Registration Endpoints (Authenticated users adding passkeys)
# =============================================================================


@router.get(
    "/user/passkey/register",
    summary="Get passkey registration options",
    description="Generate WebAuthn registration options for creating a new passkey. "
    "Returns options that should be passed to navigator.credentials.create().",
)
async def get_registration_options(
    session: Session,
    store: Store,
    verifier: Verifier,
) -> dict[str, Any]:
    """Generate WebAuthn registration options for the current user."""
    return await RegistrationService(store, verifier).begin(session)


@router.post(
    "/user/passkey/register",
    response_model=RegistrationFinishResponse,
    summary="Verify passkey registration",
    description="Verify the passkey registration response from the browser. "
    "This completes the passkey enrollment process.",
)
async def verify_registration(
    request: RegistrationFinishRequest,
    session: Session,
    store: Store,
    verifier: Verifier,
) -> RegistrationFinishResponse:
    """Verify and complete passkey registration."""
    credential_id = await RegistrationService(store, verifier).finish(session, request)
    return RegistrationFinishResponse(credential_id=credential_id)


@router.get(
    "/user/passkeys",
    response_model=CredentialListResponse,
    summary="List user's passkeys",
)
async def list_passkeys(
    session: Session,
    store: Store,
    verifier: Verifier,
) -> CredentialListResponse:
    """List all passkeys for the current user."""
    credentials = await RegistrationService(store, verifier).list_credentials(session)
    return CredentialListResponse(
        credentials=[CredentialPublic.model_validate(c) for c in credentials],
        count=len(credentials),
    )


# =============================================================================
# Authentication Endpoints (Passwordless login)
# =============================================================================


@router.get(
    "/signin/passkey",
    summary="Get passkey authentication options",
    description="Generate WebAuthn authentication options for passwordless login. "
    "The allow list is empty: any discoverable credential for this relying party may answer.",
)
async def get_authentication_options(
    session: Session,
    store: Store,
    verifier: Verifier,
) -> dict[str, Any]:
    """Generate WebAuthn authentication options (public endpoint)."""
    return await AuthenticationService(store, verifier).begin(session)


@router.post(
    "/signin/passkey",
    response_model=StatusResponse,
    summary="Verify passkey authentication",
    description="Verify the passkey authentication response and sign the session in.",
)
async def verify_authentication(
    request: AuthenticationFinishRequest,
    session: Session,
    store: Store,
    verifier: Verifier,
) -> StatusResponse:
    """Verify passkey authentication (public endpoint)."""
    await AuthenticationService(store, verifier).finish(session, request)
    return StatusResponse(status="success")
