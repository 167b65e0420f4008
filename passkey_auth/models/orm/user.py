"""
User ORM model.

An account identity that can sign in by password and owns zero or more
passkey credentials.
"""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, String, text
from sqlalchemy.orm import Mapped, mapped_column

from passkey_auth.models.orm.base import Base


class User(Base):
    """User database table."""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    # Case-sensitive exact match; the unique index is the duplicate-signup guard
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255))
    display_name: Mapped[str | None] = mapped_column(String(255), default=None)
    hashed_password: Mapped[str | None] = mapped_column(String(1024), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=text("NOW()"),
    )

    @property
    def user_handle(self) -> bytes:
        """WebAuthn user handle, derived deterministically from the user id."""
        return self.id.bytes

    @staticmethod
    def default_name(email: str) -> str:
        """Local part of an email address."""
        return email.split("@", 1)[0]
