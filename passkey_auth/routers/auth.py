"""
Authentication Router

Provides endpoints for password authentication and session identity:
- Signup
- Signin
- Signout
- Current user info
"""

from fastapi import APIRouter, status

from passkey_auth.core.dependencies import Session, Store
from passkey_auth.models.contracts.auth import (
    EmailResponse,
    SigninRequest,
    SignupRequest,
    UserResponse,
)
from passkey_auth.models.contracts.common import StatusResponse
from passkey_auth.services.password_service import PasswordService

router = APIRouter(tags=["auth"])


@router.post("/signup", response_model=EmailResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    request: SignupRequest,
    session: Session,
    store: Store,
) -> EmailResponse:
    """
    Create an account with email and password and sign in.

    Raises:
        WeakPasswordError: Password shorter than the configured minimum
        DuplicateEmailError: Email already registered
    """
    service = PasswordService(store)
    email = await service.signup(
        session,
        email=request.email,
        password=request.password,
        display_name=request.display_name,
    )
    return EmailResponse(email=email)


@router.post("/signin", response_model=EmailResponse)
async def signin(
    request: SigninRequest,
    session: Session,
    store: Store,
) -> EmailResponse:
    """
    Sign in with email and password.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password
    """
    service = PasswordService(store)
    email = await service.signin(session, email=request.email, password=request.password)
    return EmailResponse(email=email)


@router.post("/signout", response_model=StatusResponse)
async def signout(session: Session, store: Store) -> StatusResponse:
    """Forget the session's identity and any pending ceremony."""
    await PasswordService(store).signout(session)
    return StatusResponse()


@router.get("/user", response_model=UserResponse)
async def get_current_user_info(session: Session, store: Store) -> UserResponse:
    """
    Get the signed-in user.

    Raises:
        UnauthenticatedError: Anonymous session
    """
    user = await PasswordService(store).current_user(session)
    return UserResponse.model_validate(user)
