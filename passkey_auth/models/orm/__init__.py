"""SQLAlchemy ORM Models for passkey-auth.

Pure database models using SQLAlchemy 2.0 declarative style.
Ownership is explicit: every credential row carries its owner's user id.
"""

from passkey_auth.models.orm.base import Base
from passkey_auth.models.orm.credential import Credential
from passkey_auth.models.orm.user import User

__all__ = [
    "Base",
    "User",
    "Credential",
]
