"""Session token persistence on top of a platform secret store."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from keyring.errors import KeyringError

from core.logging import get_logger
from core.trading.interfaces import SecretBackend
from core.utils.exceptions import StorageError, ValidationError


class SecureSessionStore:
    """Stores the single current session token.

    Every operation is a scoped acquisition of the backend handle: the
    handle lock is released and backend failures are translated into
    StorageError on every exit path. Failures are never retried here.
    """

    def __init__(self, backend: SecretBackend, service_name: str, token_key: str):
        self._backend = backend
        self._service_name = service_name
        self._token_key = token_key
        self._handle_lock = asyncio.Lock()
        self.logger = get_logger(__name__, component="session_store")

    @asynccontextmanager
    async def _acquire(self, operation: str) -> AsyncIterator[SecretBackend]:
        async with self._handle_lock:
            try:
                yield self._backend
            except (KeyringError, OSError) as e:
                self.logger.error(
                    "Secret store operation failed",
                    operation=operation,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                raise StorageError(
                    f"Secret store unavailable during {operation}: {e}",
                    operation=operation,
                ) from e

    async def _run(self, func, *args):
        # Backends block (keychain IPC); keep them off the event loop
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    async def save(self, token: str) -> None:
        """Persist the token, replacing any previous one in the same write."""
        if not token:
            raise ValidationError("Refusing to store an empty session token",
                                  field="token", expected="non-empty str")
        async with self._acquire("save") as backend:
            await self._run(backend.set_secret, self._service_name, self._token_key, token)
        self.logger.debug("Session token saved", service_name=self._service_name)

    async def load(self) -> Optional[str]:
        """Return the stored token, or None when nothing is stored."""
        async with self._acquire("load") as backend:
            token = await self._run(backend.get_secret, self._service_name, self._token_key)
        if not token:
            self.logger.debug("No session token stored", service_name=self._service_name)
            return None
        return token

    async def clear(self) -> None:
        """Remove the stored token; clearing an empty store is a no-op."""
        async with self._acquire("clear") as backend:
            await self._run(backend.delete_secret, self._service_name, self._token_key)
        self.logger.debug("Session token cleared", service_name=self._service_name)
