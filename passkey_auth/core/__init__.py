"""Core infrastructure: configuration-backed clients, sessions, errors and dependencies."""
