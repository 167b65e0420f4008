"""
Security Utilities

Password hashing and unpredictable token generation.

Uses pwdlib (modern replacement for unmaintained passlib) for password hashing.
"""

import secrets

from pwdlib import PasswordHash
from pwdlib.hashers.bcrypt import BcryptHasher

# We explicitly use BcryptHasher to avoid requiring argon2 dependency
password_hash = PasswordHash((BcryptHasher(),))

# bcrypt refuses longer inputs
MAX_PASSWORD_BYTES = 72


def password_too_long(password: str) -> bool:
    """Check whether a password exceeds what bcrypt can hash."""
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Args:
        plain_password: The password to verify
        hashed_password: The hashed password to compare against

    Returns:
        True if password matches, False otherwise
    """
    return password_hash.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        Salted hash string
    """
    return password_hash.hash(password)


def generate_challenge(num_bytes: int) -> bytes:
    """
    Generate a ceremony challenge.

    Args:
        num_bytes: Entropy in bytes (at least 16)

    Returns:
        Random bytes from the OS CSPRNG

    Raises:
        ValueError: If fewer than 16 bytes are requested
    """
    if num_bytes < 16:
        raise ValueError("Challenges need at least 16 bytes of entropy")
    return secrets.token_bytes(num_bytes)


def generate_session_id() -> str:
    """
    Generate an opaque session identifier.

    Returns:
        URL-safe base64 encoded random string (43 characters)
    """
    return secrets.token_urlsafe(32)
