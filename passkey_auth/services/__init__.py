"""Ceremony services and the credential verification collaborator."""
