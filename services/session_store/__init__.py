"""Secure persistence of the current session token."""

from .backends import KeyringSecretBackend, MemorySecretBackend, create_secret_backend
from .store import SecureSessionStore

__all__ = [
    "SecureSessionStore",
    "KeyringSecretBackend",
    "MemorySecretBackend",
    "create_secret_backend",
]
