"""passkey-auth: passkey and password authentication ceremonies for a single relying party."""

__version__ = "1.0.0"
