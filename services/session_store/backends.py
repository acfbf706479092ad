"""Secret backends behind the session store."""

import threading
from typing import Dict, Optional, Tuple

import keyring
from keyring.backend import KeyringBackend
from keyring.errors import PasswordDeleteError

from core.config.settings import Settings


class KeyringSecretBackend:
    """Platform keychain through the keyring library."""

    def __init__(self, keyring_backend: Optional[KeyringBackend] = None):
        # None -> whatever keyring resolves for this platform
        self._keyring = keyring_backend

    def _backend(self):
        return self._keyring or keyring.get_keyring()

    def get_secret(self, service: str, key: str) -> Optional[str]:
        return self._backend().get_password(service, key)

    def set_secret(self, service: str, key: str, value: str) -> None:
        self._backend().set_password(service, key, value)

    def delete_secret(self, service: str, key: str) -> None:
        backend = self._backend()
        if backend.get_password(service, key) is None:
            return
        try:
            backend.delete_password(service, key)
        except PasswordDeleteError:
            # Removed concurrently by another process
            if backend.get_password(service, key) is not None:
                raise


class MemorySecretBackend:
    """Process-local secret backend for tests and throwaway environments."""

    def __init__(self):
        self._secrets: Dict[Tuple[str, str], str] = {}
        self._lock = threading.Lock()

    def get_secret(self, service: str, key: str) -> Optional[str]:
        with self._lock:
            return self._secrets.get((service, key))

    def set_secret(self, service: str, key: str, value: str) -> None:
        with self._lock:
            self._secrets[(service, key)] = value

    def delete_secret(self, service: str, key: str) -> None:
        with self._lock:
            self._secrets.pop((service, key), None)


def create_secret_backend(settings: Settings):
    """Select the secret backend named in settings."""
    if settings.session_store.backend == "memory":
        return MemorySecretBackend()
    return KeyringSecretBackend()
