"""
Password authentication contracts (API request/response schemas).
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SignupRequest(BaseModel):
    """Signup request model."""

    model_config = ConfigDict(populate_by_name=True)

    # Plain str rather than EmailStr: the address is stored and matched byte-for-byte
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(max_length=1024)
    display_name: str | None = Field(default=None, alias="displayName", max_length=255)


class SigninRequest(BaseModel):
    """Signin request model."""

    email: str = Field(max_length=320)
    password: str = Field(max_length=1024)


class EmailResponse(BaseModel):
    """Identity established by a password ceremony."""

    email: str


class UserResponse(BaseModel):
    """User response model."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    email: str
    name: str
    display_name: str | None = Field(default=None, serialization_alias="displayName")
