"""API routers."""

from passkey_auth.routers.auth import router as auth_router
from passkey_auth.routers.health import router as health_router
from passkey_auth.routers.passkeys import router as passkeys_router

__all__ = [
    "health_router",
    "auth_router",
    "passkeys_router",
]
