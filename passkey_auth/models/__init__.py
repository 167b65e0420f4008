"""passkey-auth Models.

ORM models (database tables):
    from passkey_auth.models.orm import User, Credential

Pydantic contracts (API request/response):
    from passkey_auth.models.contracts import SignupRequest, ErrorResponse

Enums:
    from passkey_auth.models.enums import DeviceType
"""
