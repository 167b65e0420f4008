"""
Credential ORM model.

A passkey enrolled by a user. The credential id reported by the authenticator
is the primary key, so sign-in can resolve a credential without knowing the
user up front.
"""

from datetime import UTC, datetime
from uuid import UUID

import sqlalchemy
from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from passkey_auth.models.enums import DeviceType
from passkey_auth.models.orm.base import Base


class Credential(Base):
    """WebAuthn passkey credentials for passwordless authentication."""

    __tablename__ = "credentials"

    # base64url credential id as reported by the authenticator
    id: Mapped[str] = mapped_column(String(1366), primary_key=True)
    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), index=True)

    public_key: Mapped[bytes] = mapped_column(sqlalchemy.LargeBinary)
    counter: Mapped[int] = mapped_column(Integer, default=0)

    device_type: Mapped[DeviceType] = mapped_column(
        sqlalchemy.Enum(
            DeviceType,
            name="credential_device_type",
            values_callable=lambda x: [e.value for e in x],
        ),
    )
    backed_up: Mapped[bool] = mapped_column(Boolean, default=False)
    transports: Mapped[list[str] | None] = mapped_column(JSON, default=None)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=text("NOW()"),
    )
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
